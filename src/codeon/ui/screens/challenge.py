"""Screen for solving a coding challenge."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Label, Static, TextArea

from ...errors import PersistenceError
from ...session import ChallengeSession
from ...storage.sync import SyncTicket


class ChallengeScreen(Screen):
    """Editor, terminal and diagnostics for the active challenge."""

    CSS = """
    #challenge-info {
        height: auto;
        padding: 1;
        background: $surface-darken-1;
        border: solid $primary;
    }

    #hint {
        height: auto;
        padding: 0 1;
        color: $warning;
    }

    #workspace {
        height: 1fr;
    }

    #editor {
        width: 3fr;
        border: solid $primary;
    }

    #side {
        width: 2fr;
    }

    #terminal {
        height: 2fr;
        border: solid $success;
    }

    #diagnostics {
        height: 1fr;
        padding: 0 1;
        border: solid $error;
        overflow-y: auto;
    }

    #challenge-actions {
        height: auto;
        padding: 1 0;
    }

    #challenge-actions Button {
        margin-right: 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+r", "run", "Run", show=True),
        Binding("ctrl+s", "submit", "Submit", show=True),
        Binding("ctrl+p", "previous", "Prev", show=True),
        Binding("ctrl+n", "next", "Next", show=True),
        Binding("ctrl+t", "hint", "Hint", show=True),
        Binding("ctrl+d", "end_input", "End input", show=True, priority=True),
    ]

    REFRESH_INTERVAL = 0.25

    def __init__(self, session: ChallengeSession, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session = session

    def compose(self) -> ComposeResult:
        """Compose the challenge screen."""
        with Container(id="main-content"):
            yield Static("", id="challenge-info", markup=False)
            yield Static("", id="hint", markup=False)

            with Horizontal(id="workspace"):
                yield TextArea.code_editor("", id="editor")
                with Vertical(id="side"):
                    yield Label("Terminal", classes="section-header")
                    yield TextArea("", id="terminal", read_only=True)
                    yield Label("Problems", classes="section-header")
                    yield Static("", id="diagnostics", markup=False)

            with Horizontal(id="challenge-actions"):
                yield Button("Prev", id="btn-prev", variant="default")
                yield Button("Run (ctrl+r)", id="btn-run", variant="primary")
                yield Button("Submit (ctrl+s)", id="btn-submit", variant="success")
                yield Button("Show Hint (2 Coins)", id="btn-hint", variant="warning")
                yield Button("Next", id="btn-next", variant="default")

    def on_mount(self) -> None:
        """Load the active challenge."""
        self._load_challenge()
        self.set_interval(self.REFRESH_INTERVAL, self._refresh_diagnostics)

    def _load_challenge(self) -> None:
        challenge = self.session.challenge
        position = f"{self.session.index + 1}/{len(self.session.challenges)}"
        profile = self.session.coordinator.profile
        self.query_one("#challenge-info", Static).update(
            f"{challenge.module} · {challenge.id} {challenge.title} ({position})\n\n"
            f"{challenge.description}\n\n"
            f"Level {profile.level} · XP {profile.xp}/{profile.level_threshold} · "
            f"Coins {profile.coins} · Progress {self.session.progress_percent}%"
        )
        self.query_one("#editor", TextArea).load_text(self.session.source)
        self._update_hint()
        self._sync_terminal()
        self._refresh_diagnostics()

    def _update_hint(self) -> None:
        hint = self.query_one("#hint", Static)
        button = self.query_one("#btn-hint", Button)
        if self.session.hint_visible:
            hint.update(f"Hint: {self.session.challenge.hint}")
            button.label = "Hide Hint"
        else:
            hint.update("")
            button.label = "Show Hint (2 Coins)"

    def _sync_terminal(self) -> None:
        """Mirror the transcript; editable only while waiting for input."""
        terminal = self.query_one("#terminal", TextArea)
        transcript = self.session.terminal.transcript
        if terminal.text != transcript:
            terminal.load_text(transcript)
            terminal.move_cursor(terminal.document.end)
        terminal.read_only = not self.session.terminal.waiting_for_input
        if self.session.terminal.waiting_for_input:
            terminal.focus()

    def _refresh_diagnostics(self) -> None:
        markers = self.session.markers
        lines = [
            f"[{m.severity.value}] Ln {m.start_line}, Col {m.start_column}: {m.message}"
            for m in markers
        ]
        self.query_one("#diagnostics", Static).update("\n".join(lines) or "No problems")

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        """Feed learner edits into the session."""
        text = event.text_area.text
        if event.text_area.id == "editor":
            if text != self.session.source:
                self.session.edit(text)
            return

        if event.text_area.id != "terminal" or text == self.session.terminal.transcript:
            return
        if not self.session.edit_transcript(text):
            # History before the prompt is frozen.
            self._sync_terminal()
            return
        if text.endswith("\n"):
            self.run_worker(self._submit_input(text), group="terminal")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        button_id = event.button.id

        if button_id == "btn-run":
            self.action_run()
        elif button_id == "btn-submit":
            self.action_submit()
        elif button_id == "btn-prev":
            self.action_previous()
        elif button_id == "btn-next":
            self.action_next()
        elif button_id == "btn-hint":
            self.action_hint()

    def action_run(self) -> None:
        """Run the program in the terminal."""
        if self.session.terminal.waiting_for_input:
            self.app.notify("Type the next input line, or press ctrl+d to run now.", title="Waiting")
            return
        if self.session.busy:
            self.app.notify("The program is still running.", title="Busy")
            return
        self.run_worker(self._run(), group="terminal")

    def action_end_input(self) -> None:
        """Run with the input lines typed so far."""
        if self.session.terminal.waiting_for_input:
            self.run_worker(self._finish_input(), group="terminal")

    def action_submit(self) -> None:
        """Verify the program against the challenge."""
        if self.session.busy:
            self.app.notify("Wait for the current run to finish.", title="Busy")
            return
        self.run_worker(self._submit(), group="verify")

    def action_previous(self) -> None:
        if self.session.previous():
            self._load_challenge()

    def action_next(self) -> None:
        if self.session.next():
            self._load_challenge()
        else:
            self.app.notify("Complete this challenge to unlock the next one.", title="Locked")

    def action_hint(self) -> None:
        if self.session.hint_visible:
            self.session.hide_hint()
            self._update_hint()
        else:
            self.run_worker(self._use_hint())

    async def _run(self) -> None:
        self.session.terminal.clear()
        await self.session.run()
        self._sync_terminal()
        self._refresh_diagnostics()

    async def _submit_input(self, text: str) -> None:
        await self.session.submit_input(text)
        self._sync_terminal()
        self._refresh_diagnostics()

    async def _finish_input(self) -> None:
        await self.session.finish_input()
        self._sync_terminal()
        self._refresh_diagnostics()

    async def _submit(self) -> None:
        self.app.notify("Verifying...", title=self.session.challenge.title)
        result = await self.session.submit_solution()
        if result is None:
            return

        if not result.success:
            self.app.notify(result.message, title="Not yet", severity="error", timeout=10)
            return

        stars = "★" * result.stars + "☆" * (3 - result.stars)
        delta = self.session.last_delta
        if result.already_completed or delta is None:
            self.app.notify(f"{stars}\nAlready completed.", title="Challenge Passed")
        else:
            message = f"{stars}\n+{delta.xp} XP, +{delta.coins} coins"
            if delta.levels_gained:
                message += f"\nLevel up! Now level {self.session.coordinator.profile.level}"
            self.app.notify(message, title="Challenge Complete!")
            self._watch_tickets(self.session.tickets)
            self.session.tickets = []
        self._load_challenge()

    async def _use_hint(self) -> None:
        if await self.session.use_hint():
            self._watch_tickets(self.session.tickets)
            self.session.tickets = []
            self._load_challenge()
        else:
            self.app.notify("You need 2 coins to reveal the hint.", title="Hint", severity="warning")

    def _watch_tickets(self, tickets: list[SyncTicket]) -> None:
        for ticket in tickets:
            self.run_worker(self._watch_ticket(ticket), group="sync")

    async def _watch_ticket(self, ticket: SyncTicket) -> None:
        try:
            await ticket.wait()
        except PersistenceError as e:
            self.app.notify(str(e), title="Progress not saved", severity="error", timeout=10)
