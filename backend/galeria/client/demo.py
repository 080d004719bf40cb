"""Bundled demo albums shown when the backend cannot be reached."""

from datetime import datetime, timezone
from typing import List

from galeria.schemas.album import Album, Photo

UNSPLASH = "https://images.unsplash.com"

_PHOTO_IDS = [
    "photo-1682687220742-aba13b6e50ba",
    "photo-1682687221038-404cb8830901",
    "photo-1682695796497-31a44224d6d6",
    "photo-1682695797221-8164ff1fafc9",
    "photo-1682695794947-17061dc284dd",
    "photo-1682687220199-d0124f48f95b",
    "photo-1682687220063-4742bd7fd538",
    "photo-1682687219573-3fd75f982217",
    "photo-1506905925346-21bda4d32df4",
    "photo-1469474968028-56623f02e42e",
    "photo-1447752875215-b2761acb3c5d",
    "photo-1433086966358-54859d0ed716",
    "photo-1501854140801-50d01698950b",
]

# (id, name, cover photo, photo count, created)
_ALBUMS = [
    ("album-1", "Sesja Ślubna", "photo-1519741497674-611481863552", 12, datetime(2024, 3, 15)),
    ("album-2", "Portret Artystyczny", "photo-1531746020798-e6953c6e8e04", 8, datetime(2024, 3, 10)),
    ("album-3", "Krajobraz", "photo-1506905925346-21bda4d32df4", 15, datetime(2024, 3, 5)),
    ("album-4", "Architektura", "photo-1486325212027-8081e485255e", 10, datetime(2024, 2, 28)),
]


def _photos(album_id: str, count: int, created: datetime) -> List[Photo]:
    return [
        Photo(
            id=f"{album_id}-photo-{i + 1}",
            src=f"{UNSPLASH}/{_PHOTO_IDS[i % len(_PHOTO_IDS)]}?w=1600&q=80",
            thumbnail=f"{UNSPLASH}/{_PHOTO_IDS[i % len(_PHOTO_IDS)]}?w=400&q=60",
            title=f"Photo {i + 1}",
            width=1600,
            height=1067,
            uploaded_at=created,
        )
        for i in range(count)
    ]


def demo_albums() -> List[Album]:
    """A fresh copy of the demo dataset."""
    albums = []
    for album_id, name, cover, count, created in _ALBUMS:
        created = created.replace(tzinfo=timezone.utc)
        albums.append(Album(
            id=album_id,
            name=name,
            thumbnail=f"{UNSPLASH}/{cover}?w=400&q=60",
            photos=_photos(album_id, count, created),
            created_at=created,
            updated_at=created,
        ))
    return albums
