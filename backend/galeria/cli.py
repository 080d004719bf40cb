"""
Command line for running the gallery server and talking to it.

    galeria serve --port 3001
    galeria upload ~/Photos/Wedding ~/Photos/Portrait
    galeria download album-1 album-2 -o ~/Downloads
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from galeria import __version__
from galeria.client.api import GaleriaClient, load_gallery
from galeria.client.folders import collect_albums
from galeria.client.result import Err
from galeria.core.config import settings

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


async def cmd_health(args) -> int:
    async with GaleriaClient(args.api_url) as client:
        result = await client.health()
    if isinstance(result, Err):
        logger.error(f"Backend unavailable: {result.reason}")
        return 1
    info = result.value
    print(f"{info.get('status')} - version {info.get('version')} - {info.get('storage', {}).get('albumsPath')}")
    return 0


async def cmd_list(args) -> int:
    async with GaleriaClient(args.api_url) as client:
        albums, is_demo = await load_gallery(client)
    if is_demo:
        print("(backend unavailable, showing demo albums)")
    for album in albums:
        kind = "light/max" if album.has_light_max else "flat"
        print(f"{album.id}\t{album.name}\t{len(album.photos)} photo(s)\t{kind}")
    return 0


async def cmd_upload(args) -> int:
    uploads = collect_albums(args.paths, default_name=args.name or "New Album")
    if not uploads:
        logger.warning("Nothing to upload")
        return 0

    failed = 0
    async with GaleriaClient(args.api_url) as client:
        for upload in uploads:
            logger.info(f"Uploading '{upload.name}' ({len(upload.items)} file(s))")

            def progress(sent: int, total: int, name=upload.name) -> None:
                logger.info(f"{name}: {sent * 100 // total}%")

            result = await client.upload_album(upload, on_progress=progress, batch_size=args.batch_size)
            if isinstance(result, Err):
                logger.error(f"Upload of '{upload.name}' failed: {result.reason}")
                failed += 1
                continue

            summary = result.value
            print(f"{summary.album.id}\t{summary.album.name}\t{len(summary.album.photos)} photo(s)")
            for rejected in summary.rejected:
                print(f"  rejected {rejected.filename}: {rejected.reason}")
    return 1 if failed else 0


async def cmd_download(args) -> int:
    async with GaleriaClient(args.api_url) as client:
        result = await client.download_albums(args.album_ids, Path(args.output))
    if isinstance(result, Err):
        logger.error(f"Download failed: {result.reason}")
        return 1
    print(result.value)
    return 0


async def cmd_delete(args) -> int:
    async with GaleriaClient(args.api_url) as client:
        if args.photo:
            result = await client.delete_photo(args.album_id, args.photo)
        else:
            result = await client.delete_album(args.album_id)
    if isinstance(result, Err):
        logger.error(f"Delete failed: {result.reason}")
        return 1
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("galeria.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="galeria", description="Photo gallery server and client.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--api-url", default=settings.API_URL, help="Gallery API base URL.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server.")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=3001)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(handler=cmd_serve)

    sub.add_parser("health", help="Check the backend.").set_defaults(handler=cmd_health)
    sub.add_parser("list", help="List albums.").set_defaults(handler=cmd_list)

    upload = sub.add_parser("upload", help="Upload folders (one album each) or loose images.")
    upload.add_argument("paths", nargs="+", type=Path)
    upload.add_argument("--name", help="Album name for loose image files.")
    upload.add_argument("--batch-size", type=int, default=settings.UPLOAD_BATCH_SIZE)
    upload.set_defaults(handler=cmd_upload)

    download = sub.add_parser("download", help="Download albums as a ZIP archive.")
    download.add_argument("album_ids", nargs="+")
    download.add_argument("-o", "--output", default=".", help="Directory to save the archive in.")
    download.set_defaults(handler=cmd_download)

    delete = sub.add_parser("delete", help="Delete an album, or one photo with --photo.")
    delete.add_argument("album_id")
    delete.add_argument("--photo", help="Photo id to delete instead of the whole album.")
    delete.set_defaults(handler=cmd_delete)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    outcome = args.handler(args)
    if asyncio.iscoroutine(outcome):
        outcome = asyncio.run(outcome)
    return outcome


if __name__ == "__main__":
    sys.exit(main())
