"""Rich console helpers for the xc-audit command line."""

from __future__ import annotations

from contextlib import nullcontext
from pathlib import Path
from typing import Any, Optional

from rich.console import Console


class OutputLogger:
    """Console wrapper that optionally mirrors output to a log file."""

    def __init__(
        self,
        *,
        enable_rich: bool = True,
        log_file: Optional[Path] = None,
        force_terminal: bool = False,
    ) -> None:
        self.enable_rich = bool(enable_rich)
        self.console: Optional[Console] = Console(force_terminal=force_terminal) if self.enable_rich else None

        self._log_handle = None
        self._log_console: Optional[Console] = None
        if log_file is not None:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._log_handle = log_path.open("w", encoding="utf-8")
            if self.enable_rich:
                self._log_console = Console(
                    file=self._log_handle,
                    force_terminal=False,
                    no_color=True,
                    width=120,
                )

    @property
    def rich_console(self) -> Optional[Console]:
        return self.console

    def print(self, *objects: Any, **kwargs: Any) -> None:
        if self.console is not None:
            self.console.print(*objects, **kwargs)
        else:
            print(*(str(obj) for obj in objects), **kwargs)

        if self._log_console is not None:
            self._log_console.print(*objects, **kwargs)
        elif self._log_handle is not None:
            sep = kwargs.get("sep", " ")
            end = kwargs.get("end", "\n")
            self._log_handle.write(sep.join(str(obj) for obj in objects) + end)
            self._log_handle.flush()

    def status(self, message: str):
        if self.console is not None:
            return self.console.status(message)
        return nullcontext()

    def rule(self, title: Optional[str] = None) -> None:
        if self.console is not None:
            self.console.rule(title or "")
            if self._log_console is not None:
                self._log_console.rule(title or "")
            return

        line = "-" * 80
        if title:
            text = f" {title} "
            idx = max((len(line) - len(text)) // 2, 0)
            line = f"{line[:idx]}{text}{line[idx + len(text):]}"
        self.print(line)

    def close(self) -> None:
        if self._log_handle is not None:
            self._log_handle.close()
            self._log_handle = None
            self._log_console = None

    def __enter__(self) -> "OutputLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


__all__ = ["OutputLogger"]
