"""Human-readable messages for dpnd errors."""
from pathlib import Path
from typing import Optional

from dpnd.core.errors import (
    DpndError,
    EncodingError,
    FetchError,
    FetchErrorKind,
    GitCommandError,
    InstallError,
    InstallPhase,
    ManifestNotFoundError,
    ParseError,
    ParseErrorKind,
    ReadError,
)


def render_path(cwd: Path, path: Optional[Path]) -> str:
    """Render `path` relative to `cwd` if it lies below it, else absolute."""
    if path is None:
        return "?"
    path = Path(path)
    try:
        return str(path.relative_to(cwd))
    except ValueError:
        return str(path.absolute())


def prefix_lines(text: str, prefix: str) -> str:
    if not text:
        return ""
    return "".join(prefix + line + "\n" for line in text.splitlines())


def render_git_error(err: GitCommandError) -> str:
    command = "git " + " ".join(err.args_list)
    if not err.started:
        return f"couldn't start `{command}`: {err.cause}"
    return (
        f"`{command}` failed with the following output:\n\n"
        f"{prefix_lines(err.stdout, '[>] ')}{prefix_lines(err.stderr, '[!] ')}"
    ).rstrip("\n")


def render_fetch_detail(err: FetchError) -> str:
    if isinstance(err.detail, GitCommandError):
        return render_git_error(err.detail)
    return str(err.detail)


def render_parse_error(err: ParseError, cwd: Path) -> str:
    location = render_path(cwd, err.path)
    if err.line_number is not None:
        location = f"{location}:{err.line_number}"
    nested = f" in the nested dependency '{err.owner}'" if err.owner else ""
    kind = err.kind

    if kind == ParseErrorKind.MISSING_OUTPUT_DIR:
        if err.owner:
            return (
                f"{location}: This nested dependency file (for '{err.owner}') "
                f"doesn't contain an output directory"
            )
        return f"{location}: This dependency file doesn't contain an output directory"
    if kind == ParseErrorKind.INVALID_OUTPUT_DIR_PART:
        return (
            f"{location}: This dependency file{nested} contains an invalid "
            f"component ('{err.part}') in its output directory"
        )
    if kind == ParseErrorKind.INVALID_DEP_SPEC:
        return f"{location}: Invalid dependency specification{nested}: '{err.line}'"
    if kind == ParseErrorKind.INVALID_DEP_NAME_CHAR:
        bad_char = err.dep_name[err.bad_char_index]
        return (
            f"{location}: '{err.dep_name}' contains an invalid character "
            f"('{bad_char}') at position {err.bad_char_index + 1}; dependency "
            f"names can only contain numbers, letters, hyphens, underscores "
            f"and periods"
        )
    if kind == ParseErrorKind.RESERVED_DEP_NAME:
        return (
            f"{location}: '{err.dep_name}' is a reserved name and can't be "
            f"used as a dependency name"
        )
    if kind == ParseErrorKind.DUPLICATE_DEP_NAME:
        return (
            f"{location}: A dependency named '{err.dep_name}' is already "
            f"defined on line {err.orig_line_number}{nested}"
        )
    if kind == ParseErrorKind.UNKNOWN_TOOL:
        return (
            f"{location}: The dependency '{err.dep_name}'{nested} specifies an "
            f"invalid tool name ('{err.tool_name}')"
        )
    return f"{location}: {err}"


def render_install_error(err: InstallError, cwd: Path) -> str:
    path = render_path(cwd, err.path)
    nested = f" in the nested dependency '{err.owner}'" if err.owner else ""
    phase = err.phase

    if phase == InstallPhase.READ_LEDGER:
        return f"Couldn't read the state file ('{path}'){nested}: {err.cause}"
    if phase == InstallPhase.CREATE_OUTPUT_DIR:
        return f"Couldn't create {path}, the main output directory{nested}: {err.cause}"
    if phase == InstallPhase.REMOVE_DIR:
        return (
            f"Couldn't remove '{path}', the output directory for the "
            f"'{err.dep_name}' dependency{nested}: {err.cause}"
        )
    if phase == InstallPhase.CREATE_DIR:
        return (
            f"Couldn't create '{path}', the output directory for the "
            f"'{err.dep_name}' dependency{nested}: {err.cause}"
        )
    if phase == InstallPhase.FETCH:
        if isinstance(err.cause, FetchError):
            detail = render_fetch_detail(err.cause)
            if err.cause.kind == FetchErrorKind.VERSION_CHANGE_FAILED:
                return (
                    f"Couldn't change the version for the '{err.dep_name}' "
                    f"dependency{nested}: {detail}"
                )
            return (
                f"Couldn't retrieve the source for the dependency "
                f"'{err.dep_name}'{nested}: {detail}"
            )
        return f"Couldn't fetch the dependency '{err.dep_name}'{nested}: {err.cause}"

    after = {
        InstallPhase.WRITE_LEDGER_AFTER_REMOVE: f"removing '{err.dep_name}'",
        InstallPhase.WRITE_LEDGER_AFTER_INSTALL: f"installing '{err.dep_name}'",
        InstallPhase.WRITE_INITIAL_LEDGER: "updating dependencies",
    }.get(phase, phase.value)
    return f"Couldn't write the state file ('{path}') after {after}{nested}: {err.cause}"


def render_error(err: DpndError, cwd: Path) -> str:
    """Render any dpnd error as a single user-facing message."""
    cwd = Path(cwd)

    if isinstance(err, ManifestNotFoundError):
        return (
            f"Couldn't find the dependency file '{err.manifest_name}' in the "
            f"current directory or parent directories"
        )
    if isinstance(err, ReadError):
        if err.dep_name is not None:
            return (
                f"Couldn't read the dependency file ('{render_path(cwd, err.path)}') "
                f"for the nested dependency '{err.dep_name}' "
                f"('{render_path(cwd, err.dep_dir)}'): {err.cause}"
            )
        return f"Couldn't read the dependency file at '{render_path(cwd, err.path)}': {err.cause}"
    if isinstance(err, EncodingError):
        if err.is_ledger:
            return (
                f"The state file ('{render_path(cwd, err.path)}') contains an "
                f"invalid UTF-8 sequence after byte {err.valid_up_to}"
            )
        if err.owner:
            return (
                f"{render_path(cwd, err.path)}: This nested dependency file "
                f"(for '{err.owner}') contains an invalid UTF-8 sequence after "
                f"byte {err.valid_up_to}"
            )
        return (
            f"{render_path(cwd, err.path)}: This dependency file contains an "
            f"invalid UTF-8 sequence after byte {err.valid_up_to}"
        )
    if isinstance(err, ParseError):
        message = render_parse_error(err, cwd)
        if err.is_ledger:
            return (
                f"The state file ('{render_path(cwd, err.path)}') is invalid "
                f"({message}), please remove this file and try again"
            )
        return message
    if isinstance(err, InstallError):
        return render_install_error(err, cwd)
    if isinstance(err, FetchError):
        return render_fetch_detail(err)
    if isinstance(err, GitCommandError):
        return render_git_error(err)
    return str(err)
