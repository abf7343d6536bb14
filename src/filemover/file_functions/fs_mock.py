import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import (
    Union,
    Callable,
    IO,
    ContextManager,
    Protocol,
    Optional,
    Tuple,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class MkdirCallable(Protocol):
    def __call__(
        self, path: PathLike, *, parents: bool = True, exist_ok: bool = True
    ) -> None: ...


class ResolveCallable(Protocol):
    def __call__(self, path: PathLike, *, strict: bool = False) -> Path: ...


class OpenFileCallable(Protocol):
    def __call__(
        self, path: PathLike, mode: str, *, encoding: Optional[str] = None
    ) -> ContextManager[IO]: ...


class UnlinkCallable(Protocol):
    def __call__(self, path: PathLike, *, missing_ok: bool = False) -> None: ...


class UtimeCallable(Protocol):
    def __call__(
        self, path: PathLike, times: Optional[Tuple[float, float]] = None
    ) -> None: ...


def _default_os_stat(path: PathLike) -> os.stat_result:
    return os.stat(str(path))


def _default_os_lstat(path: PathLike) -> os.stat_result:
    return os.lstat(str(path))


def _default_exists(path: PathLike) -> bool:
    return os.path.exists(str(path))


def _default_open(
    path: PathLike, mode: str, *, encoding: Optional[str] = None
) -> ContextManager[IO]:
    """
    Default implementation for opening a file.
    Matches the built-in open() signature for mode and encoding.
    """
    return open(str(path), mode, encoding=encoding)


def _default_listdir(path: PathLike) -> list[str]:
    return os.listdir(str(path))


def _default_isdir(path: PathLike) -> bool:
    return os.path.isdir(str(path))


def _default_makedirs(
    path: PathLike, *, parents: bool = True, exist_ok: bool = True
) -> None:
    """
    Default implementation for creating a directory.
    Mirrors pathlib.Path.mkdir behavior: creates all missing parents
    and does not error if the target already exists.
    """
    Path(path).mkdir(parents=parents, exist_ok=exist_ok)


def _default_resolve(path: PathLike, *, strict: bool = False) -> Path:
    p = Path(path)
    try:
        return p.resolve(strict=strict)
    except FileNotFoundError:
        if strict:
            raise
        return p.absolute()


def _default_access(path: PathLike, mode: int) -> bool:
    return os.access(str(path), mode)


def _reported_name(dst: Path) -> Path:
    """
    Returns the path under which the directory listing actually reports the
    entry just created at `dst`.

    Case-insensitive or normalizing filesystems may store a name that differs
    from the one requested. If `dst.name` is listed verbatim it is returned
    unchanged; otherwise the entry sharing `dst`'s inode is looked up.
    """
    parent = dst.parent
    names = os.listdir(str(parent))
    if dst.name in names:
        return dst
    target = os.stat(str(dst))
    for name in names:
        candidate = parent / name
        try:
            st = os.lstat(str(candidate))
        except OSError:
            continue
        if st.st_ino == target.st_ino and st.st_dev == target.st_dev:
            return candidate
    return dst


def _default_rename(src: PathLike, dst: PathLike) -> Path:
    """
    Renames `src` to `dst` (same filesystem only) and returns the
    destination path as reported by the filesystem afterwards.

    If the destination directory cannot be listed (a drop-box directory,
    for example), the requested path is returned: the rename itself has
    already succeeded.
    """
    try:
        os.rename(str(src), str(dst))
    except Exception as e:
        logger.debug("FS.rename failed (%s -> %s): %s", src, dst, e)
        raise
    try:
        return _reported_name(Path(dst))
    except OSError as e:
        logger.warning(
            "Renamed '%s' to '%s' but could not read back the stored name: %s",
            src,
            dst,
            e,
        )
        return Path(dst)


def _default_unlink(path: PathLike, *, missing_ok: bool = False) -> None:
    Path(path).unlink(missing_ok=missing_ok)


def _default_rmdir(path: PathLike) -> None:
    os.rmdir(str(path))


def _default_utime(
    path: PathLike, times: Optional[Tuple[float, float]] = None
) -> None:
    os.utime(str(path), times)


@dataclass(frozen=True)
class FS:
    stat: Callable[[PathLike], os.stat_result] = field(default=_default_os_stat)
    lstat: Callable[[PathLike], os.stat_result] = field(default=_default_os_lstat)
    exists: Callable[[PathLike], bool] = field(default=_default_exists)
    open: OpenFileCallable = field(default=_default_open)
    listdir: Callable[[PathLike], list[str]] = field(default=_default_listdir)
    is_dir: Callable[[PathLike], bool] = field(default=_default_isdir)
    mkdir: MkdirCallable = field(default=_default_makedirs)
    resolve: ResolveCallable = field(default=_default_resolve)
    access: Callable[[PathLike, int], bool] = field(default=_default_access)
    rename: Callable[[PathLike, PathLike], Path] = field(default=_default_rename)
    unlink: UnlinkCallable = field(default=_default_unlink)
    rmdir: Callable[[PathLike], None] = field(default=_default_rmdir)
    utime: UtimeCallable = field(default=_default_utime)
