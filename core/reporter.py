# =============================================================================
# core/reporter.py - Email and console rendering of partition results
# =============================================================================

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.models import ErrorRecord, Report, SuccessRecord

TEMPLATE_DIR = Path(__file__).parent / "templates"
ERROR_SUBJECT_SUFFIX = " - Including Error(s)"


def account_noun(count: int) -> str:
    return "Account" if count == 1 else "Accounts"


def employee_id_sort_key(record) -> Tuple[int, int, str]:
    """Numeric ids in numeric order, anything else after them"""
    employee_id = record.employee_id
    if employee_id.isdigit():
        return 0, int(employee_id), employee_id
    return 1, 0, employee_id


class ReportRenderer:
    """Renders accumulated Success and Error records"""

    def __init__(self, template_name: str = "report.html"):
        self.environment = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(['html'])
        )
        self.template_name = template_name

    @staticmethod
    def subject(label: str, has_errors: bool) -> str:
        subject = f"{label} Accounts Built"
        if has_errors:
            subject += ERROR_SUBJECT_SUFFIX
        return subject

    def render(self, label: str, successes: Sequence[SuccessRecord],
               errors: Sequence[ErrorRecord], group_error: Optional[str] = None) -> Report:
        """Render the subject, HTML body and console text for one partition"""
        sorted_successes = sorted(successes, key=employee_id_sort_key)
        sorted_errors = sorted(errors, key=employee_id_sort_key)

        return Report(
            subject=self.subject(label, bool(sorted_errors)),
            html=self.render_html(sorted_successes, sorted_errors, group_error),
            text=self.render_text(sorted_successes, sorted_errors, group_error)
        )

    def render_html(self, successes: List[SuccessRecord], errors: List[ErrorRecord],
                    group_error: Optional[str] = None) -> str:
        template = self.environment.get_template(self.template_name)
        return template.render(
            total=len(successes) + len(errors),
            errors=errors,
            successes=successes,
            error_heading=f"{account_noun(len(errors))} with errors",
            success_heading=f"{account_noun(len(successes))} built",
            group_error=group_error
        )

    def render_text(self, successes: List[SuccessRecord], errors: List[ErrorRecord],
                    group_error: Optional[str] = None) -> str:
        lines = [f"Total accounts processed: {len(successes) + len(errors)}"]
        if group_error:
            lines.append(f"Group assignment failed: {group_error}")

        if errors:
            lines.append("")
            lines.append(f"{account_noun(len(errors))} with errors: {len(errors)}")
            rows = []
            for record in errors:
                if len(record.errors) > 1:
                    rows.append([record.employee_id, record.account_name, ""])
                    rows.extend(["", "", f"- {error}"] for error in record.errors)
                else:
                    rows.append([record.employee_id, record.account_name, record.errors[0]])
            lines.extend(_text_table(["Employee ID", "Account Name", "Errors"], rows))

        if successes:
            lines.append("")
            lines.append(f"{account_noun(len(successes))} built: {len(successes)}")
            rows = [
                [r.employee_id, r.email, r.first_name, r.last_name] for r in successes
            ]
            lines.extend(_text_table(["Employee ID", "Email", "First Name", "Last Name"], rows))

        return "\n".join(lines)


def _text_table(headers: List[str], rows: List[List[str]]) -> List[str]:
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row)]

    def line(cells):
        return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()

    output = [line(headers), line(["-" * width for width in widths])]
    output.extend(line(row) for row in rows)
    return output
