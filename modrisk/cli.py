"""modrisk CLI -- admin entry point for moderation and risk scoring."""

import functools
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from modrisk import __version__
from modrisk.config import Settings
from modrisk.errors import ModRiskError

console = Console()

_LEVEL_STYLE = {"high": "red", "medium": "yellow", "low": "green"}
_STATUS_STYLE = {"pending": "yellow", "reviewed": "blue", "dismissed": "dim", "action_taken": "red"}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _engine(ctx: click.Context):
    from modrisk.engine import build_engine

    if "engine" not in ctx.obj:
        ctx.obj["engine"] = build_engine(ctx.obj["settings"])
    return ctx.obj["engine"]


def handle_errors(func):
    """Print engine errors in red and exit 1 instead of dumping a traceback."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ModRiskError as exc:
            console.print(f"[red]Error:[/] {exc.message}")
            raise SystemExit(1) from exc

    return wrapper


@click.group()
@click.version_option(version=__version__)
@click.option("--home", envvar="MODRISK_HOME", default=None, help="Data directory (default ~/.modrisk)")
@click.option("--verbose", "-v", is_flag=True, help="Log at INFO level")
@click.pass_context
def main(ctx: click.Context, home, verbose: bool):
    """modrisk -- content moderation and company risk scoring.

    Manage banned keywords, scan and review flagged content, and score
    marketplace companies for risk.
    """
    settings = Settings.from_env(home)
    _configure_logging("INFO" if verbose else settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


# ── Keywords ─────────────────────────────────────────────────────────


@main.group()
def keywords():
    """Manage banned keyword rules."""


@keywords.command(name="add")
@click.argument("keyword")
@click.option("--category", "-c", default="custom",
              type=click.Choice(["profanity", "spam", "legal", "harassment", "custom"]))
@click.option("--severity", "-s", default=1, type=int, help="1 (low) to 5 (high)")
@click.option("--description", "-d", default="")
@click.option("--admin", default="cli", help="Acting admin id for the audit log")
@click.pass_context
@handle_errors
def keywords_add(ctx, keyword: str, category: str, severity: int, description: str, admin: str):
    """Add a banned keyword."""
    rule = _engine(ctx).moderation.add_keyword(admin, keyword, category, severity, description)
    console.print(f"  [green]Added[/] {rule.keyword} ({rule.category.value}, severity {rule.severity}) id={rule.id}")


@keywords.command(name="list")
@click.option("--search", default=None)
@click.option("--category", default=None)
@click.option("--active/--inactive", default=None)
@click.pass_context
@handle_errors
def keywords_list(ctx, search, category, active):
    """List keyword rules."""
    rules = _engine(ctx).moderation.registry.list_rules(search=search, category=category, active=active)
    if not rules:
        console.print("[yellow]No keyword rules.[/]")
        return

    table = Table(title=f"Keyword Rules ({len(rules)})")
    table.add_column("ID", style="dim")
    table.add_column("Keyword", style="cyan")
    table.add_column("Category")
    table.add_column("Severity", justify="right")
    table.add_column("Active", justify="center")
    table.add_column("Description")
    for r in rules:
        active_mark = "[green]Y[/]" if r.is_active else "[red]N[/]"
        table.add_row(r.id[:8], r.keyword, r.category.value, str(r.severity), active_mark, r.description[:40])
    console.print(table)


@keywords.command(name="update")
@click.argument("rule_id")
@click.option("--keyword", default=None)
@click.option("--category", default=None,
              type=click.Choice(["profanity", "spam", "legal", "harassment", "custom"]))
@click.option("--severity", default=None, type=int)
@click.option("--description", default=None)
@click.option("--admin", default="cli")
@click.pass_context
@handle_errors
def keywords_update(ctx, rule_id, keyword, category, severity, description, admin):
    """Edit a keyword rule."""
    patch = {
        k: v for k, v in {
            "keyword": keyword, "category": category,
            "severity": severity, "description": description,
        }.items() if v is not None
    }
    rule = _engine(ctx).moderation.update_keyword(admin, rule_id, **patch)
    console.print(f"  [green]Updated[/] {rule.keyword} ({rule.category.value}, severity {rule.severity})")


@keywords.command(name="toggle")
@click.argument("rule_id")
@click.option("--admin", default="cli")
@click.pass_context
@handle_errors
def keywords_toggle(ctx, rule_id, admin):
    """Flip a rule between active and inactive."""
    rule = _engine(ctx).moderation.toggle_keyword(admin, rule_id)
    state = "[green]active[/]" if rule.is_active else "[yellow]inactive[/]"
    console.print(f"  {rule.keyword} is now {state}")


@keywords.command(name="delete")
@click.argument("rule_id")
@click.option("--admin", default="cli")
@click.pass_context
@handle_errors
def keywords_delete(ctx, rule_id, admin):
    """Delete a rule (existing flags keep their keyword snapshot)."""
    rule = _engine(ctx).moderation.delete_keyword(admin, rule_id)
    console.print(f"  [green]Deleted[/] {rule.keyword}")


@keywords.command(name="seed")
@click.pass_context
@handle_errors
def keywords_seed(ctx):
    """Seed the default keywords into an empty registry."""
    created = _engine(ctx).moderation.registry.seed_defaults()
    if created:
        console.print(f"  [green]Seeded[/] {len(created)} default keywords")
    else:
        console.print("[yellow]Registry already has rules; nothing seeded.[/]")


@keywords.command(name="stats")
@click.pass_context
@handle_errors
def keywords_stats(ctx):
    """Keyword counts (total, active, inactive, high severity)."""
    from modrisk.stats import summarize_keywords

    s = summarize_keywords(_engine(ctx).moderation.registry.list_rules())
    console.print(
        f"  total={s.total} active={s.active} inactive={s.inactive} high_severity={s.high_severity}"
    )


# ── Scanning ─────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.option("--type", "content_type", default="message", type=click.Choice(["message", "review"]))
@click.pass_context
@handle_errors
def scan(ctx, text: str, content_type: str):
    """Dry-run a scan of TEXT without creating a flag."""
    candidate = _engine(ctx).moderation.scan(text, content_type)
    if candidate is None:
        console.print("[green]Clean[/] -- no active keyword matched.")
        return
    console.print(Panel(
        f"{candidate.flag_reason}\n"
        f"Keywords: {', '.join(candidate.matched_keywords) or '-'}\n"
        f"Severity: {candidate.severity}",
        title="[red]Would be flagged[/]",
    ))


@main.command()
@click.argument("text")
@click.option("--type", "content_type", default="message", type=click.Choice(["message", "review"]))
@click.option("--content-id", required=True)
@click.option("--user-id", required=True)
@click.pass_context
@handle_errors
def submit(ctx, text: str, content_type: str, content_id: str, user_id: str):
    """Submit content for moderation; creates a pending flag on a match."""
    flag = _engine(ctx).moderation.submit_for_moderation(text, content_type, content_id, user_id)
    if flag is None:
        console.print("[green]Clean[/] -- no flag created.")
    else:
        console.print(f"  [red]Flagged[/] {flag.id}: {flag.flag_reason}")


# ── Flags ────────────────────────────────────────────────────────────


@main.group()
def flags():
    """Review flagged content."""


@flags.command(name="list")
@click.option("--status", default=None,
              type=click.Choice(["pending", "reviewed", "dismissed", "action_taken"]))
@click.option("--type", "content_type", default=None, type=click.Choice(["message", "review"]))
@click.option("--search", default=None)
@click.pass_context
@handle_errors
def flags_list(ctx, status, content_type, search):
    """List flags, newest first."""
    items = _engine(ctx).moderation.ledger.list_flags(status=status, content_type=content_type, search=search)
    if not items:
        console.print("[yellow]No flags match.[/]")
        return

    table = Table(title=f"Content Flags ({len(items)})")
    table.add_column("ID", style="dim")
    table.add_column("Type")
    table.add_column("Content")
    table.add_column("Status")
    table.add_column("Sev", justify="right")
    table.add_column("Reason")
    for f in items:
        style = _STATUS_STYLE.get(f.status.value, "")
        table.add_row(
            f.id[:8], f.content_type.value, f.content_id,
            f"[{style}]{f.status.value}[/]", str(f.severity), f.flag_reason[:60],
        )
    console.print(table)


@flags.command(name="show")
@click.argument("flag_id")
@click.pass_context
@handle_errors
def flags_show(ctx, flag_id):
    """Show one flag in full."""
    f = _engine(ctx).moderation.ledger.get_flag(flag_id)
    lines = [
        f"Content: {f.content_type.value} {f.content_id} by {f.user_id}",
        f"Reason: {f.flag_reason}",
        f"Keywords: {', '.join(f.matched_keywords) or '-'}",
        f"Severity: {f.severity}",
        f"Status: {f.status.value}",
        f"Created: {f.created_at}",
    ]
    if f.reviewed_by:
        lines.append(f"Reviewed by {f.reviewed_by} at {f.reviewed_at}")
    if f.admin_notes:
        lines.append(f"Notes: {f.admin_notes}")
    if f.action_taken:
        lines.append(f"Action: {f.action_taken}")
    console.print(Panel("\n".join(lines), title=f"Flag {f.id}"))


@flags.command(name="review")
@click.argument("flag_id")
@click.argument("decision", type=click.Choice(["reviewed", "dismissed", "action_taken"]))
@click.option("--admin", required=True, help="Reviewing admin id")
@click.option("--notes", default=None)
@click.option("--action", "action_description", default=None, help="What was done (action_taken only)")
@click.pass_context
@handle_errors
def flags_review(ctx, flag_id, decision, admin, notes, action_description):
    """Resolve a pending flag."""
    f = _engine(ctx).moderation.review(flag_id, decision, admin, notes, action_description)
    console.print(f"  [green]Flag {f.id[:8]}[/] -> {f.status.value} by {f.reviewed_by}")


@flags.command(name="dismiss")
@click.argument("flag_id")
@click.option("--admin", required=True)
@click.pass_context
@handle_errors
def flags_dismiss(ctx, flag_id, admin):
    """Quick-dismiss a pending flag."""
    f = _engine(ctx).moderation.quick_dismiss(flag_id, admin)
    console.print(f"  [green]Flag {f.id[:8]}[/] dismissed by {f.reviewed_by}")


# ── Statistics ───────────────────────────────────────────────────────


@main.command()
@click.pass_context
@handle_errors
def stats(ctx):
    """Moderation and risk counts."""
    s = _engine(ctx).statistics()
    table = Table(title="Moderation Statistics")
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    for label, value in [
        ("Pending", s.pending), ("Reviewed", s.reviewed), ("Dismissed", s.dismissed),
        ("Action taken", s.action_taken), ("Total flags", s.total),
        ("High risk", s.high_risk), ("Medium risk", s.medium_risk), ("Low risk", s.low_risk),
        ("Companies assessed", s.assessed_total),
    ]:
        table.add_row(label, str(value))
    console.print(table)


# ── Companies & risk ─────────────────────────────────────────────────


@main.group()
def companies():
    """Manage the company records the risk scorer reads."""


@companies.command(name="add")
@click.argument("company_id")
@click.option("--name", "legal_name", default=None, help="Legal name (required for new companies)")
@click.option("--user-id", default=None)
@click.option("--status", "verification_status", default=None,
              type=click.Choice(["verified", "pending", "rejected", "suspended"]))
@click.option("--website", default=None)
@click.option("--email", "contact_email", default=None)
@click.option("--disputes", "disputed_payments_count", default=None, type=int)
@click.pass_context
@handle_errors
def companies_add(ctx, company_id, **attrs):
    """Create or update a company."""
    attrs = {k: v for k, v in attrs.items() if v is not None}
    company = _engine(ctx).companies.upsert(company_id, **attrs)
    console.print(f"  [green]Saved[/] {company.id} ({company.display_name})")


@companies.command(name="list")
@click.pass_context
@handle_errors
def companies_list(ctx):
    """List companies."""
    items = _engine(ctx).companies.list_companies()
    if not items:
        console.print("[yellow]No companies.[/]")
        return
    table = Table(title=f"Companies ({len(items)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Verification")
    table.add_column("Disputes", justify="right")
    for c in items:
        table.add_row(c.id, c.display_name, c.verification_status.value, str(c.disputed_payments_count))
    console.print(table)


@main.group()
def risk():
    """Company risk scoring."""


@risk.command(name="assess")
@click.argument("company_id", required=False)
@click.option("--level", default=None, type=click.Choice(["low", "medium", "high"]))
@click.pass_context
@handle_errors
def risk_assess(ctx, company_id, level):
    """Score one company, or all companies when COMPANY_ID is omitted."""
    monitor = _engine(ctx).risk
    assessments = [monitor.assess(company_id)] if company_id else monitor.list_assessments(level=level)
    if not assessments:
        console.print("[yellow]No companies to assess.[/]")
        return

    table = Table(title=f"Risk Assessments ({len(assessments)})")
    table.add_column("Company", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Level")
    table.add_column("Indicators")
    for a in assessments:
        style = _LEVEL_STYLE[a.risk_level.value]
        table.add_row(
            a.company_id, str(a.risk_score), f"[{style}]{a.risk_level.value}[/]",
            "; ".join(a.risk_indicators) or "-",
        )
    console.print(table)


@risk.command(name="check")
@click.pass_context
@handle_errors
def risk_check(ctx):
    """Find newly high-risk companies and notify admins."""
    result = _engine(ctx).risk.check_high_risk_companies()
    colour = "red" if result.high_risk_count else "green"
    console.print(
        f"  [{colour}]{result.high_risk_count} high-risk[/] of {result.assessed_count} companies; "
        f"{result.notifications_sent} new notification(s)"
    )
    for a in result.newly_high:
        console.print(f"    [red]NEW[/] {a.company_id} score {a.risk_score}")


@risk.command(name="snapshot")
@click.pass_context
@handle_errors
def risk_snapshot(ctx):
    """Store the current assessment of every company for trend reporting."""
    assessments = _engine(ctx).risk.snapshot_all()
    console.print(f"  [green]Stored[/] {len(assessments)} snapshot(s)")


@risk.command(name="history")
@click.argument("company_id")
@click.pass_context
@handle_errors
def risk_history(ctx, company_id):
    """Show stored snapshots for a company."""
    history = _engine(ctx).risk.snapshots.history(company_id)
    if not history:
        console.print("[yellow]No snapshots.[/]")
        return
    for a in history:
        console.print(f"  {a.computed_at}  {a.risk_score:>3}  {a.risk_level.value}")


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.option("--actor", default=None)
@click.option("--action", default=None)
@click.option("--limit", default=50, type=int)
@click.option("--format", "fmt", default=None, type=click.Choice(["json", "csv"]),
              help="Export instead of printing a table")
@click.pass_context
@handle_errors
def audit(ctx, actor, action, limit, fmt):
    """Show the moderation audit trail."""
    logger = _engine(ctx).moderation.audit
    if fmt:
        click.echo(logger.export_events(fmt, actor=actor, action=action, limit=limit))
        return
    entries = logger.get_events(actor=actor, action=action, limit=limit)
    if not entries:
        console.print("[yellow]No audit events.[/]")
        return
    table = Table(title=f"Audit Trail ({len(entries)})")
    table.add_column("When", style="dim")
    table.add_column("Actor")
    table.add_column("Action", style="cyan")
    table.add_column("Resource")
    for e in entries:
        table.add_row(e.timestamp[:19], e.actor, e.action, f"{e.resource_type}:{e.resource_id[:8]}")
    console.print(table)


if __name__ == "__main__":
    main()
