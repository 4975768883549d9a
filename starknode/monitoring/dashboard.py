"""Terminal dashboard that shows the monitor's panels and handles keys."""

from __future__ import annotations

import argparse
import re
import threading
import time
from typing import Callable, Sequence

import urwid

from starknode.monitoring.app import MonitorApp, Panel
from starknode.monitoring.render import HELP_TEXT
from starknode.nodes import get_running_clients
from starknode.types import ClientStatus

_COLORS = {
    "black": "black",
    "white": "white",
    "red": "light red",
    "green": "light green",
    "yellow": "yellow",
    "blue": "light blue",
    "magenta": "light magenta",
    "cyan": "light cyan",
    "teal": "dark cyan",
    "navy": "dark blue",
    "gray": "light gray",
}
_TAG = re.compile(r"\[([a-z]+)\]")

_PALETTE = [
    *[(name, fg, "default") for name, fg in _COLORS.items()],
    *[(f"{name}+bold", f"{fg},bold", "default") for name, fg in _COLORS.items()],
    ("dim", "dark gray", "default"),
    ("panel", "white", "default"),
    ("light", "black", "light gray"),
    ("help", "white", "black"),
]

_PANEL_KEYS = (
    "execution",
    "consensus",
    "juno",
    "network",
    "status",
    "starknet",
    "chain",
    "rpc",
    "system",
)
_THEMED = ("execution", "consensus")

Markup = list  # a list of urwid text markup segments


def _markup_lines(text: str) -> list[Markup]:
    """Split styled panel text into urwid markup, one entry per line."""
    lines: list[Markup] = [[]]
    color: str | None = None
    bold = False
    dim = False

    def attr() -> str | None:
        if dim:
            return "dim"
        if color is not None:
            return f"{color}+bold" if bold else color
        return "white+bold" if bold else None

    def emit(piece: str) -> None:
        for index, part in enumerate(piece.split("\n")):
            if index:
                lines.append([])
            if part:
                current = attr()
                lines[-1].append(part if current is None else (current, part))

    pos = 0
    for match in _TAG.finditer(text):
        tag = match.group(1)
        if tag not in _COLORS and tag not in ("bold", "dim"):
            continue
        emit(text[pos:match.start()])
        pos = match.end()
        if tag == "bold":
            bold = True
        elif tag == "dim":
            dim = True
        elif tag == "white":
            color, bold, dim = "white", False, False
        else:
            color, dim = tag, False
    emit(text[pos:])
    return lines


class Dashboard:
    """Draws a MonitorApp's panels in the terminal and reacts to keys."""

    def __init__(
        self,
        app: MonitorApp,
        *,
        running_clients: Callable[[], list[ClientStatus]] = get_running_clients,
        export_dir: str = ".",
        refresh_interval: float = 0.25,
        feedback_delay: float = 0.5,
    ) -> None:
        self.app = app
        self.export_dir = export_dir
        self.refresh_interval = refresh_interval
        self.feedback_delay = feedback_delay
        self._running_clients = running_clients
        self._loop: urwid.MainLoop | None = None
        self._revisions: dict[str, int] = {}

        self.walkers: dict[str, urwid.SimpleFocusListWalker] = {}
        self.boxes: dict[str, urwid.LineBox] = {}
        self.frames: dict[str, urwid.AttrMap] = {}
        for key in _PANEL_KEYS:
            walker = urwid.SimpleFocusListWalker([])
            box = urwid.LineBox(urwid.ListBox(walker), title=self._panel(key).title.strip(),
                                title_align="left")
            self.walkers[key] = walker
            self.boxes[key] = box
            self.frames[key] = urwid.AttrMap(box, "panel")

        self.status_text = urwid.Text("")
        left = urwid.Pile([self.frames[k] for k in ("execution", "consensus", "juno")])
        status_row = urwid.Columns(
            [self.frames["status"], self.frames["starknet"]], dividechars=1
        )
        right = urwid.Pile(
            [
                self.frames["network"],
                status_row,
                self.frames["chain"],
                self.frames["rpc"],
                self.frames["system"],
            ]
        )
        self.layout = urwid.Frame(
            urwid.Columns([("weight", 3, left), ("weight", 2, right)]),
            footer=self.status_text,
        )
        self.view = urwid.WidgetPlaceholder(self.layout)
        self._sync_widgets()

    def _panel(self, key: str) -> Panel:
        app = self.app
        return {
            "execution": app.execution_log_box,
            "consensus": app.consensus_log_box,
            "juno": app.juno_log_box,
            "network": app.network_box,
            "status": app.status_box,
            "starknet": app.starknet_status_box,
            "chain": app.chain_info_box,
            "rpc": app.rpc_info_box,
            "system": app.system_stats_box,
        }[key]

    @property
    def help_visible(self) -> bool:
        """True while the help window covers the panels."""
        return self.view.original_widget is not self.layout

    # Drawing ---------------------------------------------------------------

    def _sync_widgets(self) -> None:
        for key in _PANEL_KEYS:
            panel = self._panel(key)
            box = self.boxes[key]
            title = panel.title.strip()
            if box.title_widget.text.strip() != title:
                box.set_title(title)
            if self._revisions.get(key) != panel.revision:
                self._revisions[key] = panel.revision
                walker = self.walkers[key]
                walker[:] = [
                    urwid.Text(line if line else "") for line in _markup_lines(panel.text)
                ]
                if panel.follow_tail and len(walker):
                    walker.set_focus(len(walker) - 1)
        for key in _THEMED:
            name = "light" if self._panel(key).background == "white" else "panel"
            self.frames[key].set_attr_map({None: name})
        bar = self.app.status_bar
        if self._revisions.get("status_bar") != bar.revision:
            self._revisions["status_bar"] = bar.revision
            markup = [segment for line in _markup_lines(bar.text) for segment in line]
            self.status_text.set_text(markup if markup else "")

    def refresh(self) -> int:
        """Apply queued updates to the widgets; return how many were applied."""
        applied = self.app.drain_updates()
        self._sync_widgets()
        return applied

    # Keys ------------------------------------------------------------------

    def handle_key(self, key: object) -> bool:
        """React to a key press; return True if the key was used."""
        if not isinstance(key, str):
            return False
        if key in ("q", "Q", "ctrl c"):
            self._quit()
            return True
        if key == "esc":
            if self.help_visible:
                self._close_help()
            else:
                self._quit()
            return True
        actions: dict[str, Callable[[], object]] = {
            "f1": self.show_help,
            "h": self.show_help,
            "H": self.show_help,
            "?": self.show_help,
            "r": lambda: self._run_action(self._restart_clients),
            "R": lambda: self._run_action(self._restart_clients),
            "s": lambda: self._run_action(self._stop_clients),
            "S": lambda: self._run_action(self._stop_clients),
            "e": lambda: self.app.export_data(self.export_dir),
            "E": lambda: self.app.export_data(self.export_dir),
            "t": self.app.toggle_theme,
            "T": self.app.toggle_theme,
            "p": self.app.toggle_pause,
            "P": self.app.toggle_pause,
        }
        action = actions.get(key)
        if action is None:
            return False
        action()
        return True

    def _quit(self) -> None:
        self.app.stop()
        if self._loop is not None:
            raise urwid.ExitMainLoop()

    def _run_action(self, action: Callable[[], None]) -> None:
        if self.feedback_delay > 0:
            threading.Thread(target=action, daemon=True).start()
        else:
            action()

    def _pause(self, factor: float) -> None:
        if self.feedback_delay > 0:
            time.sleep(self.feedback_delay * factor)

    def _restart_clients(self) -> None:
        self.app.update_status_bar("[yellow]⚠️  Restarting all clients...[white]")
        for client in self._running_clients():
            if client.pid > 0:
                self.app.update_status_bar(
                    f"[red]🔄 Stopping {client.name} (PID: {client.pid})...[white]"
                )
                self._pause(1.0)
            self.app.update_status_bar(f"[green]▶️  Starting {client.name}...[white]")
            self._pause(1.0)
        self.app.update_status_bar("[green]✅ All clients restarted successfully[white]")

    def _stop_clients(self) -> None:
        self.app.update_status_bar("[yellow]⚠️  Stopping all clients...[white]")
        for client in self._running_clients():
            if client.pid > 0:
                self.app.update_status_bar(
                    f"[red]⏹️  Stopping {client.name} (PID: {client.pid})...[white]"
                )
                self._pause(0.6)
        self.app.update_status_bar("[red]🔴 All clients stopped[white]")

    # Help ------------------------------------------------------------------

    def show_help(self) -> None:
        """Cover the panels with the keyboard and feature help."""
        if self.help_visible:
            return
        rows: list[urwid.Widget] = [urwid.Text(line if line else "") for line in
                                    _markup_lines(HELP_TEXT)]
        rows.append(urwid.Divider())
        close = urwid.Button("Close", on_press=lambda _button: self._close_help())
        rows.append(urwid.Padding(close, align="center", width=9))
        listbox = urwid.ListBox(urwid.SimpleFocusListWalker(rows))
        listbox.set_focus(len(rows) - 1)
        window = urwid.AttrMap(urwid.LineBox(listbox), "help")
        self.view.original_widget = urwid.Overlay(
            window,
            self.layout,
            align="center",
            width=("relative", 80),
            valign="middle",
            height=("relative", 90),
        )

    def _close_help(self) -> None:
        self.view.original_widget = self.layout

    # Main loop -------------------------------------------------------------

    def _on_alarm(self, loop: urwid.MainLoop, _data: object = None) -> None:
        if self.app.stopped:
            raise urwid.ExitMainLoop()
        self.refresh()
        loop.set_alarm_in(self.refresh_interval, self._on_alarm)

    def run(self) -> None:
        """Start the updaters and draw the dashboard until the user quits."""
        self._loop = urwid.MainLoop(
            self.view, _PALETTE, unhandled_input=self.handle_key
        )
        self.app.start_workers()
        self._loop.set_alarm_in(self.refresh_interval, self._on_alarm)
        try:
            self._loop.run()
        except KeyboardInterrupt:
            pass
        finally:
            self.app.stop()
            self._loop = None


def main(argv: Sequence[str] | None = None) -> int:
    """Run the monitoring dashboard."""
    parser = argparse.ArgumentParser(
        prog="starknode-monitor",
        description="Live dashboard of the local Ethereum and Starknet clients.",
    )
    parser.add_argument(
        "--export-dir", default=".", help="directory that exported files go to"
    )
    parser.add_argument(
        "--refresh", type=float, default=0.25, help="seconds between screen refreshes"
    )
    args = parser.parse_args(argv)
    if args.refresh <= 0:
        parser.error("--refresh must be positive")
    dashboard = Dashboard(
        MonitorApp(), export_dir=args.export_dir, refresh_interval=args.refresh
    )
    dashboard.run()
    return 0