from __future__ import annotations

from typing import List, Sequence


def calculate_init_args(
    original_command: Sequence[str],
    original_args: Sequence[str],
    exe_path: str,
) -> List[str]:
    """Build the argument list handed to the init executable.

    The result always starts with ``exe_path`` followed by the container's
    original command and args. When only args are set the image entrypoint is
    assumed to be ``exe_path`` itself, so it is repeated before the args. With
    neither command nor args the real entrypoint is left for the init
    executable to resolve at runtime.
    """

    args = [exe_path]
    if original_command:
        args.extend(original_command)

    if original_args:
        if not original_command:
            args.append(exe_path)
        args.extend(original_args)

    return args


__all__ = ["calculate_init_args"]
