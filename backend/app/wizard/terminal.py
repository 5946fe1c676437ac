"""Terminal front end for the membership wizard, rendered with rich.

Commands:
  set <field>=<value>      edit a field (camelCase or snake_case name;
                           genres comma-separated, booleans yes/no)
  attach <slot> <path>     attach a file (id_document, proof_of_address,
                           additional_documents)
  detach <slot> <index>    remove an attached file
  next | back              move between steps
  save | load              save or restore progress
  submit                   send the application (review step only)
  help | quit
"""

import asyncio
import logging
import shlex

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table

from app.schemas.membership import ApplicationDraft, field_names
from app.wizard.documents import (
    ACCEPTED_FORMATS,
    MAX_FILE_SIZE_MB,
    SLOT_LABELS,
    FileHandle,
)
from app.wizard.notifications import Toast, ToastLog
from app.wizard.steps import Step
from app.wizard.view import build_view
from app.wizard.wizard import MembershipWizard

logger = logging.getLogger(__name__)

BOOL_FIELDS = {"has_disability", "agree_to_terms", "subscribe_newsletter"}
TRUE_WORDS = {"y", "yes", "true", "1", "on"}

# Fields shown (and editable) on each step besides the gated ones
STEP_EXTRAS: dict[Step, tuple[str, ...]] = {
    Step.CONTACT: ("alternate_phone",),
    Step.PREFERENCES: ("has_disability", "disability_details"),
    Step.REVIEW: ("subscribe_newsletter",),
}


class ConsoleNotifier(ToastLog):
    """Keeps the toast log and prints each toast as it arrives."""

    def __init__(self, console: Console):
        super().__init__()
        self.console = console

    def notify(self, toast: Toast) -> None:
        super().notify(toast)
        style = "red" if toast.is_error else "green"
        body = f"[bold]{toast.title}[/bold]"
        if toast.description:
            body += f"\n{toast.description}"
        self.console.print(Panel(body, border_style=style))


def parse_value(field: str, raw: str):
    if field in BOOL_FIELDS:
        return raw.strip().lower() in TRUE_WORDS
    if field == "preferred_genres":
        return [g.strip() for g in raw.split(",") if g.strip()]
    if field in ("gender", "reading_frequency") and not raw.strip():
        return None
    return raw.strip()


class TerminalWizard:
    def __init__(self, wizard: MembershipWizard, console: Console | None = None):
        self.wizard = wizard
        self.console = console or Console()
        self._names = field_names(ApplicationDraft)

    # ── Rendering ───────────────────────────────────────────

    def render(self) -> None:
        view = build_view(self.wizard)
        self.console.print(
            f"[bold]Membership Application[/bold]  "
            f"Step {view.current_step} of {view.total_steps}  "
            f"[bold]{view.progress_percent}%[/bold]"
        )
        self.console.print(ProgressBar(total=100, completed=view.progress_percent, width=40))
        self.console.print(
            f"Application Fee: [green]{view.application_fee}[/green]  ({view.fee_note})"
        )
        self.console.print(
            "  ".join(
                f"[{'bold' if s.status == 'current' else 'dim'}]{s.icon} {s.title}[/]"
                for s in view.steps
            )
        )
        if self.wizard.current_step == Step.REVIEW:
            self._render_review(view.review)
        else:
            self._render_fields()
        if view.focus_field:
            self.console.print(f"[red]Fix {view.focus_field} to continue[/red]")

    def _render_fields(self) -> None:
        step = self.wizard.current_step
        table = Table(title=f"{step.icon} {step.title}: {step.description}")
        table.add_column("Field")
        table.add_column("Value")
        table.add_column("")
        values = self.wizard.draft.model_dump()
        for name in step.fields + STEP_EXTRAS.get(step, ()):
            if name in SLOT_LABELS:
                files = self.wizard.documents.slot(name)
                value = ", ".join(f.filename for f in files) or "-"
            else:
                value = values.get(name)
                value = getattr(value, "value", value)
                if isinstance(value, list):
                    value = ", ".join(value)
                value = "-" if value in ("", None) else str(value)
            table.add_row(name, escape(value), f"[red]{self.wizard.errors.get(name, '')}[/red]")
        self.console.print(table)
        if step == Step.DOCUMENTS:
            self.console.print(
                f"Accepted: {', '.join(ACCEPTED_FORMATS)} (max {MAX_FILE_SIZE_MB}MB each)"
            )

    def _render_review(self, review) -> None:
        table = Table(title="Review Your Information", show_header=False)
        for key, value in review.model_dump().items():
            if value is not None:
                table.add_row(key.replace("_", " ").title(), escape(str(value)))
        self.console.print(table)
        terms_error = self.wizard.errors.get("agree_to_terms")
        agreed = "yes" if self.wizard.draft.agree_to_terms else "no"
        self.console.print(f"Agree to terms: {agreed}  [red]{terms_error or ''}[/red]")

    # ── Commands ────────────────────────────────────────────

    async def handle(self, line: str) -> bool:
        """Run one command line; returns False when the user quits."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")
            return True
        if not parts:
            return True
        cmd, args = parts[0].lower(), parts[1:]

        if cmd in ("quit", "q", "exit"):
            return False
        if cmd in ("help", "?"):
            self.console.print(__doc__)
        elif cmd in ("next", "n"):
            self.wizard.next_step()
        elif cmd in ("back", "b"):
            self.wizard.previous_step()
        elif cmd in ("save", "s"):
            await self.wizard.save_progress()
        elif cmd in ("load", "l"):
            await self.wizard.load_progress()
        elif cmd == "set":
            self._set(" ".join(args))
        elif cmd == "attach" and len(args) == 2:
            self._attach(args[0], args[1])
        elif cmd == "detach" and len(args) == 2:
            self._detach(args[0], args[1])
        elif cmd == "submit":
            await self._submit()
        else:
            self.console.print(f"[red]Unknown command: {escape(line)}[/red] (try 'help')")
        return True

    def _set(self, assignment: str) -> None:
        key, sep, raw = assignment.partition("=")
        field = self._names.get(key.strip())
        if not sep or field is None:
            self.console.print(f"[red]Unknown field: {escape(key.strip())}[/red]")
            return
        try:
            self.wizard.update(**{field: parse_value(field, raw)})
        except KeyError as e:
            self.console.print(f"[red]{escape(e.args[0])}[/red]")
        except (ValidationError, ValueError) as e:
            self.console.print(f"[red]Invalid value for {field}: {escape(str(e))}[/red]")

    def _attach(self, slot: str, path: str) -> None:
        try:
            self.wizard.attach(slot, FileHandle.from_path(path))
        except KeyError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")
        except OSError as e:
            self.console.print(f"[red]Cannot read {escape(path)}: {escape(str(e))}[/red]")

    def _detach(self, slot: str, index: str) -> None:
        try:
            self.wizard.detach(slot, int(index))
        except (KeyError, IndexError, ValueError) as e:
            self.console.print(f"[red]Cannot detach: {escape(str(e))}[/red]")

    async def _submit(self) -> None:
        if self.wizard.current_step != Step.REVIEW:
            self.console.print("[red]Complete all steps before submitting[/red]")
            return
        self.console.print("Submitting...")
        result = await self.wizard.submit()
        if result.ok:
            await self.wizard.pipeline.drain()

    async def run(self) -> None:
        await self.wizard.start()
        while True:
            self.render()
            line = await asyncio.to_thread(self.console.input, "> ")
            if not await self.handle(line):
                break
