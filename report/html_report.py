"""
Static HTML report of the kept lots, rendered with Jinja2.

All record fields come from scraped pages and are escaped by the
template environment (autoescape is on for .j2 templates).
"""

from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Optional, Sequence, Union

from jinja2 import Environment, PackageLoader, select_autoescape

from lot_models import LotRecord
from run_config import RunConfig

TEMPLATE_NAME = "montres.html.j2"
MAX_DESCRIPTION_LENGTH = 450


def truncate(text: str, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    """Cut text longer than `limit` to `limit - 1` characters plus an ellipsis."""
    if len(text) > limit:
        return text[:limit - 1] + "…"
    return text


def next_run_at(now: datetime, tz: tzinfo, hour: int) -> datetime:
    """
    Next occurrence of `hour`:00 in `tz`, strictly after `now`.

    Args:
        now: Aware datetime (any timezone)
        tz: Target timezone
        hour: Hour of day in the target timezone
    """
    local_now = now.astimezone(tz)
    candidate = local_now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= local_now:
        candidate = candidate + timedelta(days=1)
    return candidate


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("report", "templates"),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    env.filters["truncate_description"] = truncate
    return env


def render_report(records: Sequence[LotRecord], next_run: datetime,
                  config: RunConfig, now: Optional[datetime] = None) -> str:
    """
    Render the report page.

    Args:
        records: Kept lots, in extraction order
        next_run: When the report will be regenerated
        config: Run configuration (timezone, source origin)
        now: Generation time (default: current time)

    Returns:
        HTML document as a string
    """
    tz = config.tzinfo
    generated = (now or datetime.now(tz)).astimezone(tz)
    next_local = next_run.astimezone(tz)

    template = _environment().get_template(TEMPLATE_NAME)
    return template.render(
        records=list(records),
        base=config.base,
        timezone=config.timezone,
        run_hour=config.run_hour,
        generated_at=generated.strftime("%Y-%m-%d %H:%M:%S"),
        next_run_display=next_local.strftime("%d/%m/%Y %H:%M"),
        next_run_iso=next_local.isoformat(),
    )


def write_report(html: str, output_path: Union[str, Path]) -> Path:
    """Write the report, replacing any previous one. Returns the path."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    return output
