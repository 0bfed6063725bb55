"""Main Textual application."""

import logging
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from ..challenges.catalog import get_challenges
from ..progression.coordinator import ProgressionCoordinator
from ..sandbox.client import Sandbox, create_sandbox
from ..session import ChallengeSession
from ..settings import Settings
from ..storage.database import Database
from ..storage.progress import ProgressTracker
from ..storage.sync import ProfileSync
from .screens.challenge import ChallengeScreen
from .screens.home import HomeScreen

logger = logging.getLogger(__name__)


class CodeOnApp(App):
    """Coding challenge trainer with an in-terminal program runner."""

    TITLE = "CodeOn"
    SUB_TITLE = "Learn C# one challenge at a time"

    CSS = """
    Screen {
        background: $surface;
    }

    #main-content {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }

    .title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }

    .subtitle {
        color: $text-muted;
        margin-bottom: 2;
    }

    .section-header {
        text-style: bold;
    }

    .hint {
        color: $text-muted;
        text-style: italic;
    }

    Button:focus {
        background: $primary-darken-1;
    }
    """

    BINDINGS = [
        Binding("f1", "go_home", "F1:Home", show=True),
        Binding("f2", "challenges", "F2:Challenges", show=True),
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("f10", "help", "F10:Help", show=True),
        Binding("?", "help", "?:Help", show=False),
    ]

    def __init__(self, settings: Settings, sandbox: Optional[Sandbox] = None, **kwargs):
        """Initialize the app.

        Args:
            settings: Runtime settings
            sandbox: Execution backend; built from settings when omitted
        """
        super().__init__(**kwargs)
        self.settings = settings
        self.sandbox = sandbox or create_sandbox(settings)
        self.db = Database(settings.db_path)
        self.sync = ProfileSync(
            self.db,
            max_attempts=settings.sync_max_attempts,
            backoff=settings.sync_backoff,
        )
        self.session: Optional[ChallengeSession] = None

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Header()
        yield Footer()

    async def on_mount(self) -> None:
        """Open storage, replay unsent changes and build the session."""
        self.settings.data_dir.mkdir(parents=True, exist_ok=True)
        await self.db.connect()
        await self.sync.resume()

        challenges = [c for c in get_challenges() if c.language == self.settings.language]
        profile = await self.db.get_profile()
        coordinator = ProgressionCoordinator(self.sync, profile)
        self.session = ChallengeSession(challenges, self.sandbox, coordinator, self.settings)
        logger.info(
            "session opened: level %d, %d/%d challenges completed",
            profile.level, len(profile.completed), len(challenges),
        )

        self.install_screen(HomeScreen(ProgressTracker(self.db, challenges)), name="home")
        self.install_screen(ChallengeScreen(self.session), name="challenge")
        self.push_screen("home")

    async def on_unmount(self) -> None:
        """Close the session before the storage it writes to."""
        if self.session is not None:
            await self.session.close()
        await self.sync.stop()
        await self.sandbox.close()
        await self.db.close()

    def action_go_home(self) -> None:
        """Navigate to home screen."""
        self.switch_screen("home")

    def action_challenges(self) -> None:
        """Navigate to the challenge screen."""
        self.switch_screen("challenge")

    def action_help(self) -> None:
        """Show help."""
        self.notify(
            "Screens: F1=Home, F2=Challenges\n"
            "Challenge: ctrl+r=Run, ctrl+s=Submit, ctrl+p/ctrl+n=Prev/Next, ctrl+t=Hint\n"
            "Terminal: ctrl+d ends input early and runs with the lines typed so far\n"
            "Type your answer after the prompt in the terminal and press Enter.\n"
            "Other: ctrl+q=Quit",
            title="Keyboard Shortcuts",
            timeout=10,
        )
