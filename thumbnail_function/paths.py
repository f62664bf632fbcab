from dataclasses import dataclass
from urllib.parse import unquote_plus, urlsplit, urlunsplit

from thumbnail_function.errors import ValidationError


@dataclass(frozen=True)
class BlobLocation:
    container: str
    object_name: str


def _split(location: str):
    parts = urlsplit(location or "")
    if not parts.scheme or not parts.netloc:
        raise ValidationError(f"Location is not an absolute URI: {location!r}")
    return parts


def _final_segment(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def replace_extension(file_name: str, new_extension: str) -> str:
    """Swap the extension of ``file_name``, or append one if it has none."""
    if not new_extension.startswith("."):
        new_extension = "." + new_extension

    # a leading dot alone (".profile") is not an extension
    last_dot = file_name.rfind(".")
    if last_dot > 0:
        return file_name[:last_dot] + new_extension
    return file_name + new_extension


def has_folder_token(location: str, folder_token: str) -> bool:
    return folder_token in _split(location).path


def resolve_destination(
    source_location: str,
    source_folder_token: str,
    dest_folder_token: str,
    dest_extension: str,
) -> str:
    """Map a source object URI onto its thumbnail URI.

    The first occurrence of ``source_folder_token`` in the path is replaced
    verbatim (case-sensitive, no patterns) and the final segment gets
    ``dest_extension``. When the token is absent the path is passed through
    unchanged and only the extension differs.
    """
    parts = _split(source_location)

    path = parts.path.replace(source_folder_token, dest_folder_token, 1)
    head, _, name = path.rpartition("/")
    if not name:
        raise ValidationError(f"Location has no object name: {source_location!r}")
    path = f"{head}/{replace_extension(name, dest_extension)}"

    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def object_name_from_location(location: str) -> str:
    # S3 event keys are form-encoded, so "+" is a space
    name = unquote_plus(_final_segment(_split(location).path))
    if not name:
        raise ValidationError(f"Location has no object name: {location!r}")
    return name


def source_blob(location: str, originals_folder: str) -> BlobLocation:
    return BlobLocation(container=originals_folder, object_name=object_name_from_location(location))


def destination_blob(
    location: str,
    originals_folder: str,
    thumbnails_folder: str,
    extension: str,
) -> BlobLocation:
    destination = resolve_destination(location, originals_folder, thumbnails_folder, extension)
    return BlobLocation(container=thumbnails_folder, object_name=object_name_from_location(destination))
