"""
Split an album upload into bounded request-sized batches.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from galeria.client.folders import UploadItem
from galeria.services.filenames import FolderTag, classify_upload_path

UNMATCHED_MAX_REASON = "Max file has no matching light file"


@dataclass
class BatchPlan:
    batches: List[List[UploadItem]] = field(default_factory=list)
    # Max files without a same-named light file; never sent
    unmatched: List[UploadItem] = field(default_factory=list)


def _pair_by_name(
    light: Sequence[UploadItem], max_: Sequence[UploadItem]
) -> Tuple[List[Tuple[UploadItem, UploadItem]], List[UploadItem], List[UploadItem]]:
    """Match light and max files by their stored name, in upload order."""
    waiting: Dict[str, List[UploadItem]] = {}
    for item in max_:
        waiting.setdefault(classify_upload_path(item.relative_path).name, []).append(item)

    pairs, light_only = [], []
    for item in light:
        candidates = waiting.get(classify_upload_path(item.relative_path).name)
        if candidates:
            pairs.append((item, candidates.pop(0)))
        else:
            light_only.append(item)

    paired = {id(m) for _, m in pairs}
    max_only = [item for item in max_ if id(item) not in paired]
    return pairs, light_only, max_only


def _chunks(items: Sequence[UploadItem], batch_size: int) -> List[List[UploadItem]]:
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


def plan_batches(items: Sequence[UploadItem], batch_size: int = 30) -> BatchPlan:
    """
    Plan the request batches for one album.

    Plain uploads are cut into consecutive chunks of `batch_size`. When the
    upload holds both light and max files, files are paired by name and every
    batch stays within `batch_size` while carrying at least one file of each
    group: once an album is light/max the server rejects batches missing either.
    Batches left without a pair repeat the first max file; the server does not
    store a max file whose light twin is not in the same batch.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    if not items:
        return BatchPlan()

    groups = {tag: [] for tag in FolderTag}
    for item in items:
        groups[classify_upload_path(item.relative_path).tag].append(item)
    light, max_ = groups[FolderTag.LIGHT], groups[FolderTag.MAX]

    if not (light and max_):
        return BatchPlan(batches=_chunks(items, batch_size))
    if batch_size < 2:
        raise ValueError("batch_size must be at least 2 for light/max uploads")

    pairs, light_only, max_only = _pair_by_name(light, max_)
    singles = groups[FolderTag.UNTAGGED] + light_only
    if not pairs:
        return BatchPlan(batches=_chunks(singles, batch_size), unmatched=max_only)

    count = max(1, math.ceil((2 * len(pairs) + len(singles)) / batch_size))
    seeded = min(count, len(pairs))
    batches = [list(pair) for pair in pairs[:seeded]]
    has_pair = [True] * seeded

    def room(index):
        # A batch without a pair keeps one slot for the repeated max file
        limit = batch_size if has_pair[index] else batch_size - 1
        return limit - len(batches[index])

    index = 0
    for pair in pairs[seeded:]:
        while index < len(batches) and room(index) < 2:
            index += 1
        if index == len(batches):
            batches.append([])
            has_pair.append(True)
        batches[index].extend(pair)

    index = 0
    for item in singles:
        while index < len(batches) and room(index) < 1:
            index += 1
        if index == len(batches):
            batches.append([])
            has_pair.append(False)
        batches[index].append(item)

    anchor = pairs[0][1]
    for batch, paired in zip(batches, has_pair):
        if not paired:
            batch.append(anchor)
    return BatchPlan(batches=batches, unmatched=max_only)
