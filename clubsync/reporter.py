"""Classification and rendering of match results (text, HTML, summary)."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from clubsync import (
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_TRIAL,
    Candidate,
    RosterMember,
)

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'


class OutputMode(Enum):
    """Output filter selected on the command line (value = CLI code)."""

    NOT_FOUND = 'NF'
    DUPLICATE = 'DUP'
    EXPIRED = 'EXP'
    ACTIVE = 'ACT'
    TRIAL = 'TRI'
    DEFAULT = ''

    @property
    def status_filter(self) -> str:
        """Member status the matcher must require for this mode."""
        return _STATUS_FILTERS.get(self, '')

    @property
    def output_class(self) -> 'OutputClass':
        if self in _STATUS_FILTERS:
            return OutputClass.STATUS
        return OutputClass[self.name]


_STATUS_FILTERS = {
    OutputMode.EXPIRED: STATUS_EXPIRED,
    OutputMode.ACTIVE: STATUS_ACTIVE,
    OutputMode.TRIAL: STATUS_TRIAL,
}


class OutputClass(Enum):
    NOT_FOUND = 'not-found'
    DUPLICATE = 'duplicate'
    STATUS = 'status'
    DEFAULT = 'default'


@dataclass
class RenderedReport:
    """Classified match result for one candidate, with its text lines."""

    candidate: Candidate
    matches: list[RosterMember]
    output_class: OutputClass
    lines: list[str] = field(default_factory=list)

    @property
    def emitted(self) -> bool:
        return bool(self.lines)


def format_header(candidate: Candidate) -> str:
    return f'[{candidate.display()}]'


def format_not_found(candidate: Candidate) -> str:
    return f'[{candidate.display()}] Not Found'


def format_member(member: RosterMember) -> str:
    """Detail line for one matched member."""
    return (
        f'\t[{member.num}] {member.first_name} {member.last_name} '
        f'({member.email}) - {member.status} [{member.expired}]'
    )


def format_mailbox(member: RosterMember) -> str:
    """RFC 5322 style mailbox, ready to paste into a "To" field."""
    return f'{member.first_name} {member.last_name} <{member.email}>,'


def format_suggestion(member: RosterMember, score: float) -> str:
    return f'\t? [{member.num}] {member.first_name} {member.last_name} ({score:.2f})'


def classify(
    matches: list[RosterMember],
    mode: OutputMode,
    candidate: Candidate,
    email_format: bool = False,
) -> RenderedReport:
    """Decide what to emit for one candidate's match set.

    Args:
        matches: Sorted match set for the candidate.
        mode: Output mode selected for the run.
        candidate: The external record the matches belong to.
        email_format: Render mailbox lines without a header (status modes).

    Returns:
        RenderedReport whose ``lines`` are empty when nothing is emitted.
    """
    output_class = mode.output_class
    lines: list[str] = []

    if output_class is OutputClass.NOT_FOUND:
        if not matches:
            lines.append(format_not_found(candidate))

    elif output_class is OutputClass.DUPLICATE:
        if len(matches) > 1:
            lines.append(format_header(candidate))
            lines.extend(format_member(m) for m in matches)

    elif output_class is OutputClass.STATUS:
        if matches:
            if email_format:
                lines.extend(format_mailbox(m) for m in matches)
            else:
                lines.append(format_header(candidate))
                lines.extend(format_member(m) for m in matches)

    else:
        lines.append(format_header(candidate))
        lines.extend(format_member(m) for m in matches)

    return RenderedReport(
        candidate=candidate,
        matches=matches,
        output_class=output_class,
        lines=lines,
    )


def compute_stats(reports: list[RenderedReport]) -> dict:
    """Compute summary statistics over all classified candidates."""
    total = len(reports)
    not_found = sum(1 for r in reports if not r.matches)
    single = sum(1 for r in reports if len(r.matches) == 1)
    duplicate = sum(1 for r in reports if len(r.matches) > 1)
    return {
        'total': total,
        'not_found': not_found,
        'single': single,
        'duplicate': duplicate,
        'emitted': sum(1 for r in reports if r.emitted),
    }


def print_summary(reports: list[RenderedReport], title: str = '') -> None:
    """Print match statistics to stdout.

    Args:
        reports: Classified results of a reconciliation run.
        title: Name of the run (e.g. the source platform).
    """
    stats = compute_stats(reports)

    print(f"\n=== Reconciliation: {title} ===")
    print(f"Candidates checked:        {stats['total']:>5}")
    print(f"Single match:              {stats['single']:>5}")
    print(f"Duplicate matches:         {stats['duplicate']:>5}")
    print(f"Not found:                 {stats['not_found']:>5}")
    print("---")
    print(f"Reported:                  {stats['emitted']:>5}")
    print()


def write_html_report(
    reports: list[RenderedReport],
    output_path: Path,
    title: str = '',
) -> None:
    """Write the emitted results as an HTML report using Jinja2.

    Args:
        reports: Classified results of a reconciliation run.
        output_path: Path for the output HTML file.
        title: Name of the run (for the report title).
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template('report.html')

    html = template.render(
        title=title,
        reports=[r for r in reports if r.emitted],
        stats=compute_stats(reports),
    )

    output_path.write_text(html, encoding='utf-8')
    log.info("HTML report written: %s", output_path)
