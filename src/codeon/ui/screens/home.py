"""Home screen with progress overview and quick actions."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import Screen
from textual.widgets import Button, Label, Static

from ...storage.progress import ProgressTracker


class HomeScreen(Screen):
    """Welcome screen with the learner's progress and what to try next."""

    CSS = """
    #status-section {
        height: auto;
        margin: 1 0;
        padding: 1;
        background: $surface-darken-1;
        border: solid $primary;
    }

    #recommendations {
        height: auto;
        margin: 1 0;
        padding: 1;
        border: solid $success;
    }

    #actions {
        height: auto;
        margin: 1 0;
    }

    #actions Button {
        width: 100%;
        margin: 1 0;
    }

    #actions Button:focus {
        background: $success;
    }
    """

    BINDINGS = [
        Binding("j", "focus_next", "Down", show=False),
        Binding("k", "focus_previous", "Up", show=False),
        Binding("enter", "press_button", "Select", show=False),
    ]

    def __init__(self, tracker: ProgressTracker, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tracker = tracker

    def action_press_button(self) -> None:
        """Press the focused button."""
        focused = self.focused
        if isinstance(focused, Button):
            focused.press()

    def compose(self) -> ComposeResult:
        """Compose the home screen."""
        with Container(id="main-content"):
            yield Static("CodeOn", classes="title")
            yield Static(
                "Solve C# challenges, earn XP and keep your streak going",
                classes="subtitle",
            )

            with Vertical(id="status-section"):
                yield Label("", id="progress-status")

            with Vertical(id="recommendations"):
                yield Label("Up next", classes="section-header")
                yield Static("", id="recommendation-list", markup=False)

            with Vertical(id="actions"):
                yield Button("Continue Challenges", id="btn-challenges", variant="primary")

            yield Static("Press ? or F10 for keyboard shortcuts", classes="hint")

    def on_mount(self) -> None:
        self.run_worker(self._update_status())

    def on_screen_resume(self) -> None:
        """Called when screen is shown again."""
        self.run_worker(self._update_status())

    async def _update_status(self) -> None:
        """Update the progress display."""
        summary = await self.tracker.get_summary()
        recommendations = await self.tracker.get_recommendations()

        self.query_one("#progress-status", Label).update(
            f"Level {summary['level']} · XP {summary['xp']}/{summary['level_threshold']} · "
            f"Coins {summary['coins']}\n"
            f"Completed {summary['challenges_completed']}/{summary['challenges_total']} "
            f"challenges · {summary['total_stars']} stars · "
            f"{summary['current_streak']} day streak"
        )
        lines = [
            f"{r['challenge_id']} {r['title']} ({r['difficulty']}): {r['reason']}"
            for r in recommendations
        ]
        self.query_one("#recommendation-list", Static).update(
            "\n".join(lines) or "Every challenge earned three stars!"
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "btn-challenges":
            self.app.switch_screen("challenge")
