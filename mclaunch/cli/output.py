"""Output of the CLI, either for humans (optionally colored) or for machines.
"""

from .lang import get_raw as _raw

import shutil
import time
import sys
import re

from typing import List, Tuple, Optional


class OutputTable:
    """Base class for tables, rows are added and then printed at once.
    """

    def __init__(self) -> None:
        self.rows: List[Optional[Tuple[str, ...]]] = []
        self.columns_length: List[int] = []

    def add(self, *cells) -> None:
        cells_str = tuple(map(str, cells))
        self.rows.append(cells_str)
        for i, cell in enumerate(cells_str):
            if i < len(self.columns_length):
                self.columns_length[i] = max(self.columns_length[i], len(cell))
            else:
                self.columns_length.append(len(cell))

    def separator(self) -> None:
        self.rows.append(None)

    def print(self) -> None:
        raise NotImplementedError


class Output:
    """Abstract output of the CLI, implementations differ by format.
    """

    def table(self) -> OutputTable:
        raise NotImplementedError

    def task(self, state: Optional[str], key: Optional[str], **kwargs) -> None:
        """Update the current task, or create it. The state is a short status such as
        OK or FAILED, the key is the one of the message to print.
        """
        raise NotImplementedError

    def finish(self) -> None:
        """Finish the current task, if any.
        """
        raise NotImplementedError

    def print(self, text: str) -> None:
        """Print raw text, without adding a new line.
        """
        raise NotImplementedError

    def prompt(self, password: bool = False) -> Optional[str]:
        """Prompt for a line on standard input, none if cancelled.
        """
        raise NotImplementedError


class HumanOutput(Output):

    state_colors = {
        "OK": "\033[92m",
        "FAILED": "\033[31m",
        "WARN": "\033[33m",
        "INFO": "\033[34m",
        "HALT": "\033[33m",
    }

    def __init__(self, color: bool) -> None:
        self.color = color
        self.term_width = 0
        self.term_width_update_time = 0.0
        self.last_len: Optional[int] = None

    def get_term_width(self) -> int:
        """Terminal width, updated at most once per second.
        """
        now = time.monotonic()
        if now - self.term_width_update_time > 1:
            self.term_width_update_time = now
            self.term_width = shutil.get_terminal_size().columns
        return self.term_width

    def table(self) -> OutputTable:
        return HumanTable(self)

    def task(self, state: Optional[str], key: Optional[str], **kwargs) -> None:

        term_width = self.get_term_width()
        if term_width < 20:
            return

        if state is None:
            header = "\r         "
        else:
            color = self.state_colors.get(state) if self.color else None
            header = f"\r[{state:^6s}] " if color is None else f"\r[{color}{state:^6s}\033[0m] "

        print(header, end="", flush=False)

        if key is None:
            self.last_len = 0
            sys.stdout.flush()
            return

        msg = _raw(key, kwargs)
        if len(msg) + 9 > term_width:
            msg = f"{msg[:term_width - 12]}..."

        # Erase the remaining of the previous message.
        padding = 0 if self.last_len is None else max(0, self.last_len - len(msg))
        print(msg, " " * padding, sep="", end="", flush=True)
        self.last_len = len(msg)

    def finish(self) -> None:
        if self.last_len is not None:
            print()
            self.last_len = None

    def print(self, text: str) -> None:
        print(text, end="")

    def prompt(self, password: bool = False) -> Optional[str]:
        try:
            if password:
                import getpass
                return getpass.getpass("")
            return input("")
        except KeyboardInterrupt:
            return None


class HumanTable(OutputTable):

    def __init__(self, out: HumanOutput) -> None:
        super().__init__()
        self.out = out

    def print(self) -> None:

        # Cells longer than their column (when the terminal is too narrow) are cut.
        columns_length = self.columns_length.copy()
        max_length = self.out.get_term_width() - 1
        while len(columns_length) and 1 + sum(x + 3 for x in columns_length) > max_length:
            widest = columns_length.index(max(columns_length))
            if columns_length[widest] <= 1:
                break
            columns_length[widest] -= 1

        lines = ["─" * length for length in columns_length]

        print("┌─{}─┐".format("─┬─".join(lines)), flush=False)
        for row in self.rows:
            if row is None:
                print("├─{}─┤".format("─┼─".join(lines)), flush=False)
            else:
                cells = [f"{row[i] if i < len(row) else '':{length}.{length}s}" for i, length in enumerate(columns_length)]
                print("│ {} │".format(" │ ".join(cells)), flush=False)
        print("└─{}─┘".format("─┴─".join(lines)))


class MachineOutput(Output):
    """Output with one function call per line: `name:arg,arg,key=value`.
    """

    escape_re = re.compile("[\\n\\r,]")

    @classmethod
    def print_escape(cls, s: str) -> str:
        return cls.escape_re.sub(lambda m: {"\n": "\\n", "\r": "\\r"}.get(m.group(), f"\\{m.group()}"), s)

    def print_function(self, name: str, *args: str, **kwargs) -> None:
        print(name, ":", ",".join(self.print_escape(arg) for arg in [
            *args,
            *(f"{k}={v}" for k, v in kwargs.items())
        ]), sep="")

    def table(self) -> OutputTable:
        return MachineTable(self)

    def task(self, state: Optional[str], key: Optional[str], **kwargs) -> None:
        self.print_function("task", str(state), str(key), **kwargs)

    def finish(self) -> None:
        pass

    def print(self, text: str) -> None:
        self.print_function("print", text)

    def prompt(self, password: bool = False) -> Optional[str]:
        self.print_function("prompt", password=str(int(password)))
        try:
            return input("")
        except KeyboardInterrupt:
            return None


class MachineTable(OutputTable):

    def __init__(self, out: MachineOutput) -> None:
        super().__init__()
        self.out = out

    def print(self) -> None:
        self.out.print_function("table", str(len(self.rows)))
        for row in self.rows:
            if row is None:
                self.out.print_function("sep")
            else:
                self.out.print_function("row", *row)
