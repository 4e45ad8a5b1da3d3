"""
Trivia Maze - Main Entry Point

An interactive text front end for the Trivia Maze engine: explore a grid of
rooms, answer trivia at locked doors, and reach the exit before every path
is blocked.
"""

import sys
from pathlib import Path

# Add the project root to the Python path for module discovery
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import argparse
import logging
import random
from dataclasses import dataclass
from typing import Optional

from src.data_models import DifficultyPresets, DifficultySettings, Direction
from src.game_state import GameSession, SessionState
from src.maze import DoorState, MissingQuestionPolicy, MoveOutcome
from src.trivia import (
    DEFAULT_QUESTION_BANK,
    JsonQuestionSource,
    QuestionSourceError,
    QuestionSupplyError,
    SqliteQuestionSource,
)
from src.trivia.question_source import describe_source


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class GameConfig:
    """Configuration for a game session."""

    difficulty: str = "normal"

    # Question sources (a SQLite database wins over a JSON bank)
    questions_path: Path = DEFAULT_QUESTION_BANK
    db_path: Optional[Path] = None

    seed: Optional[int] = None
    missing_question_policy: MissingQuestionPolicy = MissingQuestionPolicy.OPEN
    advance_on_correct: bool = True

    # Runtime options
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects and the policy is an enum."""
        if isinstance(self.questions_path, str):
            self.questions_path = Path(self.questions_path)
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)
        if isinstance(self.missing_question_policy, str):
            self.missing_question_policy = MissingQuestionPolicy(self.missing_question_policy)

    @property
    def settings(self) -> DifficultySettings:
        return DifficultyPresets.by_name(self.difficulty)


def create_question_source(config: GameConfig):
    """
    Open the configured question source.

    Raises:
        QuestionSourceError: If the JSON question bank cannot be read
    """
    rng = random.Random(config.seed)
    if config.db_path is not None:
        return SqliteQuestionSource(config.db_path, rng=rng)
    return JsonQuestionSource(config.questions_path, rng=rng)


def create_session(config: GameConfig) -> GameSession:
    """Build a GameSession (still in MAIN_MENU) from the configuration."""
    source = create_question_source(config)
    logger.info(f"Question source: {describe_source(source)}")
    return GameSession(
        config.settings,
        source,
        seed=config.seed,
        missing_question_policy=config.missing_question_policy,
        advance_on_correct=config.advance_on_correct,
    )


# =============================================================================
# MAP RENDERING
# =============================================================================

_HORIZONTAL_DOORS = {DoorState.OPEN: "-", DoorState.LOCKED: "?", DoorState.BLOCKED: "X"}
_VERTICAL_DOORS = {DoorState.OPEN: "|", DoorState.LOCKED: "?", DoorState.BLOCKED: "X"}


def render_map(session: GameSession) -> str:
    """
    Draw the maze as text.

    Rooms: @ player, E exit, * visited, . unvisited.
    Doors: -/| open, ? locked, X blocked.
    """
    maze = session.maze
    if maze is None:
        return "No maze yet. Type 'new' to start a game."

    graph = maze.graph
    lines = []
    for r in range(graph.rows):
        room_line = []
        door_line = []
        for c in range(graph.cols):
            room = graph.room(r, c)
            if room.coordinate == maze.current:
                mark = "@"
            elif room.coordinate == graph.exit:
                mark = "E"
            else:
                mark = "*" if room.visited else "."
            room_line.append(f"[{mark}]")

            east = room.get_door(Direction.EAST)
            if east is not None:
                room_line.append(_HORIZONTAL_DOORS[east.state])
            elif c < graph.cols - 1:
                room_line.append(" ")

            south = room.get_door(Direction.SOUTH)
            door_line.append(f" {_VERTICAL_DOORS[south.state]} " if south else "   ")
            if c < graph.cols - 1:
                door_line.append(" ")
        lines.append("".join(room_line))
        if r < graph.rows - 1:
            lines.append("".join(door_line).rstrip())
    return "\n".join(lines)


# =============================================================================
# INTERACTIVE CLI
# =============================================================================

class TriviaMazeCLI:
    """Interactive command-line interface for the game."""

    def __init__(self, session: GameSession):
        self.session = session
        self.running = False
        self.commands = {
            "status": self.cmd_status,
            "map": self.cmd_map,
            "move": self.cmd_move,
            "go": self.cmd_move,
            "answer": self.cmd_answer,
            "a": self.cmd_answer,
            "hint": self.cmd_hint,
            "skip": self.cmd_skip,
            "back": self.cmd_back,
            "cheat": self.cmd_cheat,
            "pause": self.cmd_pause,
            "resume": self.cmd_resume,
            "new": self.cmd_new,
            "menu": self.cmd_menu,
            "log": self.cmd_log,
            "help": self.cmd_help,
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
        }
        for direction in Direction:
            self.commands[direction.value] = self._mover(direction)
            self.commands[direction.value[0]] = self._mover(direction)

    def _mover(self, direction: Direction):
        return lambda args: self.cmd_move(direction.value)

    def run(self) -> None:
        """Run the interactive CLI loop."""
        self.running = True
        print("\n" + "=" * 60)
        print("TRIVIA MAZE - Interactive Mode")
        print("=" * 60)
        print("Type 'new' to start, 'help' for commands, 'quit' to exit.\n")

        while self.running:
            try:
                user_input = input(f"[{self.session.state.value}]> ").strip()
                if not user_input:
                    continue

                self.process_command(user_input)

            except KeyboardInterrupt:
                print("\nInterrupted. Type 'quit' to exit.")
            except EOFError:
                self.running = False

        print("\nThanks for playing!")

    def process_command(self, user_input: str) -> None:
        """Process a user command."""
        parts = user_input.split(maxsplit=1)
        cmd = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""

        if cmd in self.commands:
            self.commands[cmd](args)
        else:
            print(f"Unknown command: {cmd}. Type 'help' for available commands.")

    def cmd_help(self, args: str) -> None:
        """Show help information."""
        print("""
Available Commands:
  new          - Start a new game
  status       - Show score, position and state
  map          - Draw the maze
  move DIR     - Move north/east/south/west (shortcuts: n, e, s, w)
  answer TEXT  - Answer the current question (T/F, A-D, or the word)
  hint         - Reveal the hint for the current question
  skip         - Skip the current question (blocks the door)
  back         - Step back from the door without answering
  cheat        - Reveal the answer to the current question
  pause/resume - Pause or resume the game
  menu         - Return to the main menu (from pause or a finished game)
  log          - Show recent game events
  help         - Show this help
  quit/exit    - Exit the game
""")

    def cmd_status(self, args: str) -> None:
        """Show game status."""
        summary = self.session.summary()
        print(f"State: {summary.state.value}")
        print(f"Difficulty: {summary.difficulty}")
        print(f"Position: {summary.position}")
        print(f"Score: {summary.score}")
        print(f"Questions answered: {summary.questions_answered}")
        print(f"Hints left: {self.session.hints_left}")
        pending = self.session.pending
        if pending is not None:
            print(f"Attempts left on this door: {pending.attempts_left}")

    def cmd_map(self, args: str) -> None:
        print(render_map(self.session))

    def cmd_move(self, args: str) -> None:
        """Move in a direction."""
        if not args:
            print("Usage: move DIRECTION (north, east, south, west)")
            return
        try:
            result = self.session.attempt_move(args.strip())
        except ValueError as e:
            print(str(e))
            return

        print(result.message)
        if result.outcome == MoveOutcome.LOCKED and self.session.pending is not None:
            self._show_question()
        self._announce_end()

    def _show_question(self) -> None:
        pending = self.session.pending
        question = pending.question
        print(f"\nQ: {question.prompt}")
        for index, option in enumerate(question.options):
            print(f"  {chr(ord('A') + index)}) {option}")
        extras = [f"{pending.attempts_left} attempt(s)"]
        if pending.time_limit:
            extras.append(f"{pending.time_limit}s limit")
        if pending.hint_available:
            extras.append("hint available")
        if pending.skip_allowed:
            extras.append("skip allowed")
        print(f"({', '.join(extras)})")

    def cmd_answer(self, args: str) -> None:
        """Answer the current question."""
        if not args:
            print("Usage: answer TEXT")
            return
        result = self.session.submit_answer(args)
        print(result.message)
        if self.session.pending is not None:
            self._show_question()
        self._announce_end()

    def cmd_hint(self, args: str) -> None:
        hint = self.session.use_hint()
        if hint is None:
            print("No hint available.")
        else:
            print(f"Hint: {hint} ({self.session.hints_left} hint(s) left)")

    def cmd_skip(self, args: str) -> None:
        result = self.session.skip_question()
        print(result.message)
        self._announce_end()

    def cmd_back(self, args: str) -> None:
        if self.session.dismiss_question():
            print("You step back from the door.")
        else:
            print("There is no question to step back from.")

    def cmd_cheat(self, args: str) -> None:
        token = self.session.cheat()
        print(f"Answer: {token}" if token is not None else "Nothing to reveal.")

    def cmd_pause(self, args: str) -> None:
        print("Game paused." if self.session.pause() else "Nothing to pause.")

    def cmd_resume(self, args: str) -> None:
        print("Game resumed." if self.session.resume() else "Nothing to resume.")

    def cmd_menu(self, args: str) -> None:
        if self.session.return_to_menu():
            print("Back at the main menu.")
        else:
            print("Pause the game first to return to the menu.")

    def cmd_new(self, args: str) -> None:
        """Start a new game, abandoning any game in progress."""
        session = self.session
        if session.state == SessionState.AWAITING_ANSWER:
            session.dismiss_question()
        if session.state == SessionState.PLAYING:
            session.pause()
        if session.state == SessionState.PAUSED:
            session.return_to_menu()
        try:
            session.start_game()
        except QuestionSupplyError as e:
            logger.error(f"Could not build the maze: {e}")
            print(f"Could not start a game: {e}")
            return
        print(f"New game: {session.settings}")
        print(render_map(session))

    def cmd_log(self, args: str) -> None:
        """Show recent events."""
        print(self.session.event_log.format_log(max_events=15))

    def cmd_quit(self, args: str) -> None:
        self.running = False

    def _announce_end(self) -> None:
        state = self.session.state
        if state not in (SessionState.VICTORY, SessionState.GAME_OVER):
            return
        summary = self.session.summary()
        if summary.won:
            print("\n*** You escaped the maze! ***")
        else:
            print("\n*** GAME OVER: no path to the exit remains ***")
        print(f"Final score: {summary.score}")
        print(f"Questions answered: {summary.questions_answered}")
        print(f"Final position: {summary.position}")
        print("Type 'new' to play again or 'quit' to exit.")


# =============================================================================

def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Trivia Maze - answer questions to open doors and escape",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src.main                          # Normal difficulty, bundled questions
  python -m src.main --difficulty hard        # Hard preset
  python -m src.main --db trivia.db           # Questions from a SQLite database
  python -m src.main --seed 42 -v             # Reproducible game with debug logging
        """
    )

    parser.add_argument(
        "-d", "--difficulty",
        type=str,
        default="normal",
        choices=["easy", "normal", "hard", "expert", "custom"],
        help=(
            "Difficulty preset (default: normal). The bundled bank has too few "
            "questions for every door on hard and expert; with the default "
            "--missing-questions open the rest start open, so use --db for a "
            "full bank"
        ),
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for question order and kinds",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    question_group = parser.add_argument_group("Question Options")
    question_group.add_argument(
        "--questions",
        type=Path,
        default=DEFAULT_QUESTION_BANK,
        help="JSON question bank (default: bundled sample bank)",
    )
    question_group.add_argument(
        "--db",
        type=Path,
        help="SQLite trivia database with questions and hints tables",
    )
    question_group.add_argument(
        "--missing-questions",
        type=str,
        default=MissingQuestionPolicy.OPEN.value,
        choices=[policy.value for policy in MissingQuestionPolicy],
        help="What to do with doors that get no question (default: open)",
    )

    rules_group = parser.add_argument_group("Rule Options")
    rules_group.add_argument(
        "--stay-on-correct",
        action="store_true",
        help="Stay put after opening a door instead of walking through it",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> GameConfig:
    """Create GameConfig from parsed arguments."""
    return GameConfig(
        difficulty=args.difficulty,
        questions_path=args.questions,
        db_path=args.db,
        seed=args.seed,
        missing_question_policy=MissingQuestionPolicy(args.missing_questions),
        advance_on_correct=not args.stay_on_correct,
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    print("=" * 60)
    print("TRIVIA MAZE v0.1.0")
    print("=" * 60)

    config = create_config_from_args(args)
    try:
        session = create_session(config)
    except QuestionSourceError as e:
        logger.error(f"Could not load questions: {e}")
        return 1

    cli = TriviaMazeCLI(session)
    cli.run()

    return 0


if __name__ == "__main__":
    sys.exit(main())
