"""
Main CLI application using Typer.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.json_store import JsonBookingStore
from ..adapters.memory_store import InMemoryBookingStore
from ..adapters.webhook_notifier import NullNotifier, WebhookNotifier
from ..config import AppConfig, load_config
from ..domain.admin import check_admin_pin
from ..domain.exceptions import DetailbookError, InvalidRequest
from ..domain.models import (
    Booking,
    BookingRequest,
    Catalog,
    LocationMode,
    VehicleSize,
    parse_date,
    parse_time,
)
from ..domain.quote_engine import QuoteEngine
from ..services.booking_service import BookingService

app = typer.Typer(
    name="detailbook",
    help="Quotes, availability and bookings for a car-detailing studio",
    add_completion=False
)
admin_app = typer.Typer(help="Bookings dashboard (PIN protected)")
app.add_typer(admin_app, name="admin")

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
PinOption = Annotated[
    Optional[str],
    typer.Option("--pin", help="Admin PIN. Prompted for when omitted."),
]


def _load(config_file: Optional[Path]) -> AppConfig:
    config = load_config(config_file)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return config


def _build_service(config: AppConfig, demo: bool = False) -> BookingService:
    engine = QuoteEngine(
        catalog=config.build_catalog(), rules=config.build_rules(), timezone=config.timezone
    )

    if demo:
        store = InMemoryBookingStore()
    else:
        store = JsonBookingStore(config.storage.bookings_file)

    if config.notifications.webhook_url:
        notifier = WebhookNotifier(
            url=config.notifications.webhook_url,
            timeout=config.notifications.timeout_seconds,
        )
    else:
        notifier = NullNotifier()

    return BookingService(engine=engine, store=store, notifier=notifier, timezone=config.timezone)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _money(value: Decimal, currency: str) -> str:
    return f"{currency} {value:,.2f}"


def _require_admin(config: AppConfig, pin: Optional[str]) -> None:
    if pin is None:
        pin = typer.prompt("Admin PIN", hide_input=True)
    if not check_admin_pin(pin, config.admin.pin):
        console.print("[bold red]Incorrect PIN[/bold red]")
        raise typer.Exit(1)


def _location_text(booking: Booking, catalog: Catalog) -> str:
    r = booking.request
    if r.location_mode is LocationMode.MOBILE:
        zone = catalog.zone_label(r.zone_id) or f"Zone {r.zone_id}"
        return f"Home • {zone} — {r.street}, {r.suburb} {r.postcode}"
    return "Studio"


def _render_confirmation(booking: Booking, config: AppConfig, catalog: Catalog) -> Panel:
    """Printable confirmation for a new booking."""
    r = booking.request
    addons = ", ".join(catalog.addon_names(r.addons)) or "None"
    lines = [
        f"[bold]{config.brand.name}[/bold]  [dim]{config.brand.tagline}[/dim]",
        "",
        f"[bold]Reference:[/bold] {booking.id}",
        f"[bold]When:[/bold] {r.date.isoformat()} {r.time.strftime('%H:%M')}",
        f"[bold]Customer:[/bold] {r.customer} • {r.phone} • {r.email}",
        f"[bold]Vehicle:[/bold] {r.vehicle} ({r.size.value.upper()})",
        f"[bold]Service:[/bold] {catalog.service_name(r.service_id)}",
        f"[bold]Location:[/bold] {_location_text(booking, catalog)}",
        f"[bold]Enhancements:[/bold] {addons}",
        f"[bold]Travel fee:[/bold] {_money(booking.travel_fee, config.currency)}",
        f"[bold]Total:[/bold] {_money(booking.total, config.currency)}",
        "",
        f"[dim]{config.brand.phone} • {config.brand.email} • {config.brand.address}[/dim]",
    ]
    return Panel.fit("\n".join(lines), title="✓ Booking confirmed")


def _missing_fields(values: dict) -> List[str]:
    required = ["service", "size", "vehicle", "addons", "mobile", "date", "time",
                "name", "email", "phone", "notes"]
    if values["mobile"]:
        required += ["zone", "street", "suburb", "postcode"]
    return [key for key in required if values[key] is None]


def _run_booking_wizard(config: AppConfig, catalog: Catalog, service: BookingService, values: dict) -> dict:
    """
    Ask for every booking field that was not given on the command line.

    Step 1 picks the package, step 2 the place and time, step 3 the contact
    details.
    """
    console.print("[bold]1️⃣  Vehicle & package[/bold]")
    if values["service"] is None:
        for idx, entry in enumerate(catalog.services.values(), 1):
            console.print(f"  {idx}. {entry.name} [dim]({entry.id})[/dim]")
        values["service"] = typer.prompt("→ Service id", default="signature")
    if values["size"] is None:
        values["size"] = typer.prompt("→ Vehicle size (small/medium/large)", default="medium")
    if values["vehicle"] is None:
        values["vehicle"] = typer.prompt("→ Vehicle make/model")
    if values["addons"] is None:
        console.print("  Enhancements: " + ", ".join(
            f"{a.id} ({_money(a.price, config.currency)})" for a in catalog.addons.values()
        ))
        raw = typer.prompt("→ Add-on ids (space separated)", default="", show_default=False)
        values["addons"] = raw.split()

    console.print("\n[bold]2️⃣  Location & time[/bold]")
    if values["mobile"] is None:
        values["mobile"] = typer.confirm("→ Home service?", default=False)
    if values["mobile"]:
        if values["zone"] is None:
            for zone in catalog.zones.values():
                console.print(f"  {zone.id}: {zone.label} (+{_money(zone.fee, config.currency)})")
            values["zone"] = typer.prompt("→ Zone", default="A")
        if values["street"] is None:
            values["street"] = typer.prompt("→ Street address")
        if values["suburb"] is None:
            values["suburb"] = typer.prompt("→ Suburb")
        if values["postcode"] is None:
            values["postcode"] = typer.prompt("→ Postcode")
    if values["date"] is None:
        values["date"] = typer.prompt(
            "→ Date (YYYY-MM-DD)", default=pendulum.today(config.timezone).to_date_string()
        )
    if values["time"] is None:
        day = parse_date(values["date"])
        free = [slot.label for slot in service.time_slots(day) if not slot.taken]
        console.print("  Free times: " + (", ".join(free) or "none"))
        values["time"] = typer.prompt("→ Time (HH:MM)", default=free[0] if free else None)

    console.print("\n[bold]3️⃣  Your details[/bold]")
    if values["name"] is None:
        values["name"] = typer.prompt("→ Full name")
    if values["email"] is None:
        values["email"] = typer.prompt("→ Email")
    if values["phone"] is None:
        values["phone"] = typer.prompt("→ Phone")
    if values["notes"] is None:
        values["notes"] = typer.prompt("→ Notes", default="", show_default=False)

    console.print()
    return values


@app.command()
def services(config_file: ConfigOption = None):
    """
    List services, enhancements and travel zones with prices.
    """
    try:
        config = _load(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    catalog = config.build_catalog()

    table = Table(title="Services", show_header=True, header_style="bold cyan")
    table.add_column("Id", style="bold yellow")
    table.add_column("Name")
    table.add_column("Duration", justify="right")
    for size in VehicleSize:
        table.add_column(size.value.capitalize(), justify="right")
    for entry in catalog.services.values():
        table.add_row(
            entry.id,
            entry.name,
            f"{entry.duration_minutes} min",
            *[_money(entry.price_for(size), config.currency) for size in VehicleSize],
        )

    addons = Table(title="Enhancements", show_header=True, header_style="bold cyan")
    addons.add_column("Id", style="bold yellow")
    addons.add_column("Name")
    addons.add_column("Price", justify="right")
    for addon in catalog.addons.values():
        addons.add_row(addon.id, addon.name, _money(addon.price, config.currency))

    zones = Table(title="Home service zones", show_header=True, header_style="bold cyan")
    zones.add_column("Id", style="bold yellow")
    zones.add_column("Label")
    zones.add_column("Fee", justify="right")
    for zone in catalog.zones.values():
        zones.add_row(zone.id, zone.label, _money(zone.fee, config.currency))

    console.print()
    console.print(table)
    console.print(addons)
    console.print(zones)
    console.print()


@app.command()
def quote(
    service: Annotated[str, typer.Option("--service", "-s", help="Service id")],
    size: Annotated[VehicleSize, typer.Option("--size", help="Vehicle size")] = VehicleSize.MEDIUM,
    addon: Annotated[Optional[List[str]], typer.Option("--addon", "-a", help="Add-on id (repeatable)")] = None,
    zone: Annotated[Optional[str], typer.Option("--zone", "-z", help="Travel zone for home service")] = None,
    config_file: ConfigOption = None,
):
    """
    Price a selection. Giving a zone means home service.
    """
    try:
        config = _load(config_file)
        engine = QuoteEngine(
            catalog=config.build_catalog(), rules=config.build_rules(), timezone=config.timezone
        )
        mode = LocationMode.MOBILE if zone else LocationMode.STUDIO
        breakdown = engine.quote(service, size, addon or [], mode, zone)
    except (FileNotFoundError, ValueError, DetailbookError) as e:
        _fail(e)

    console.print(f"\n[bold cyan]💰 Quote for {engine.catalog.service_name(service)}[/bold cyan]")
    console.print(f"   Base ({size.value}): {_money(breakdown.base_price, config.currency)}")
    console.print(f"   Enhancements: {_money(breakdown.addons_total, config.currency)}")
    console.print(f"   Travel fee: {_money(breakdown.travel_fee, config.currency)}")
    console.print(f"   [bold]Total: {_money(breakdown.total, config.currency)}[/bold]\n")


@app.command()
def slots(
    day: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    config_file: ConfigOption = None,
    demo: Annotated[bool, typer.Option("--demo", help="Use an empty in-memory booking list.")] = False,
):
    """
    Show every time slot for a day and which ones are taken.
    """
    try:
        config = _load(config_file)
        service = _build_service(config, demo=demo)
        target = parse_date(day) if day else pendulum.today(config.timezone).date()
        time_slots = service.time_slots(target)
        remaining = service.remaining_capacity(target)
    except (FileNotFoundError, ValueError, DetailbookError) as e:
        _fail(e)

    table = Table(title=f"Slots on {target.isoformat()}", show_header=True, header_style="bold cyan")
    table.add_column("Time", style="bold")
    table.add_column("Status")
    for slot in time_slots:
        table.add_row(slot.label, "[red]booked[/red]" if slot.taken else "[green]free[/green]")

    console.print()
    console.print(table)
    if remaining == 0:
        console.print("[yellow]⚠ No availability on this day. Please pick another date.[/yellow]\n")
    else:
        console.print(f"Bookings left today: [bold]{remaining}[/bold]\n")


@app.command()
def book(
    service_id: Annotated[Optional[str], typer.Option("--service", "-s", help="Service id")] = None,
    size: Annotated[Optional[VehicleSize], typer.Option("--size", help="Vehicle size")] = None,
    vehicle: Annotated[Optional[str], typer.Option("--vehicle", help="Vehicle make/model")] = None,
    addon: Annotated[Optional[List[str]], typer.Option("--addon", "-a", help="Add-on id (repeatable)")] = None,
    mobile: Annotated[Optional[bool], typer.Option("--mobile/--studio", help="Home service or studio")] = None,
    zone: Annotated[Optional[str], typer.Option("--zone", "-z", help="Travel zone for home service")] = None,
    street: Annotated[Optional[str], typer.Option("--street")] = None,
    suburb: Annotated[Optional[str], typer.Option("--suburb")] = None,
    postcode: Annotated[Optional[str], typer.Option("--postcode")] = None,
    day: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")] = None,
    at: Annotated[Optional[str], typer.Option("--time", "-t", help="Time (HH:MM)")] = None,
    name: Annotated[Optional[str], typer.Option("--name", help="Customer full name")] = None,
    email: Annotated[Optional[str], typer.Option("--email")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes")] = None,
    config_file: ConfigOption = None,
    demo: Annotated[bool, typer.Option("--demo", help="Keep the booking in memory only.")] = False,
):
    """
    Book a detail. Missing details are asked for step by step.

    Examples:

        # Interactive mode
        detailbook book

        # Batch mode
        detailbook book -s signature --size medium --vehicle "Mazda 3" \\
            --date 2025-03-01 --time 10:00 --name "Jane Doe" \\
            --email jane@example.com --phone "0400 000 111"
    """
    try:
        config = _load(config_file)
        service = _build_service(config, demo=demo)
        catalog = service.engine.catalog

        console.print("\n" + "=" * 60)
        console.print(f"[bold cyan]🚗  {config.brand.name} - Book your detail[/bold cyan]")
        console.print("=" * 60 + "\n")

        if demo:
            console.print("[yellow]⚠  DEMO MODE: the booking is not saved[/yellow]\n")

        values = {
            "service": service_id,
            "size": size.value if size else None,
            "vehicle": vehicle,
            "addons": addon,
            "mobile": mobile,
            "zone": zone,
            "street": street,
            "suburb": suburb,
            "postcode": postcode,
            "date": day,
            "time": at,
            "name": name,
            "email": email,
            "phone": phone,
            "notes": notes,
        }
        if service_id is not None:
            # Batch mode: optional extras default to nothing
            values["addons"] = values["addons"] or []
            values["notes"] = values["notes"] or ""
            if values["mobile"] is None:
                values["mobile"] = False
        if _missing_fields(values):
            values = _run_booking_wizard(config, catalog, service, values)

        request = BookingRequest(
            customer=values["name"],
            email=values["email"],
            phone=values["phone"],
            vehicle=values["vehicle"],
            service_id=values["service"],
            size=VehicleSize(values["size"]),
            addons=tuple(values["addons"] or ()),
            location_mode=LocationMode.MOBILE if values["mobile"] else LocationMode.STUDIO,
            zone_id=values["zone"] if values["mobile"] else None,
            street=values["street"] or "",
            suburb=values["suburb"] or "",
            postcode=values["postcode"] or "",
            date=parse_date(values["date"]),
            time=parse_time(values["time"]),
            notes=values["notes"] or "",
        )

        booking = service.submit(request)

    except InvalidRequest as e:
        console.print("[bold red]Please fix the following:[/bold red]")
        for error in e.errors:
            console.print(f"  • {error.message}")
        raise typer.Exit(1)

    except (FileNotFoundError, ValueError, DetailbookError) as e:
        _fail(e)

    console.print(_render_confirmation(booking, config, catalog))
    console.print()


@admin_app.command("list")
def admin_list(
    query: Annotated[str, typer.Option("--query", "-q", help="Search name, email, phone, vehicle, or address")] = "",
    show_all: Annotated[bool, typer.Option("--all", help="Include past bookings")] = False,
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    List bookings, upcoming first.
    """
    try:
        config = _load(config_file)
        _require_admin(config, pin)
        service = _build_service(config)
        bookings = service.search(query=query, upcoming_only=not show_all)
        total = len(service.list_bookings())
    except (FileNotFoundError, ValueError, DetailbookError) as e:
        _fail(e)

    catalog = service.engine.catalog

    if not bookings:
        console.print("[yellow]No bookings found.[/yellow]")
        return

    table = Table(title=f"Bookings ({len(bookings)} of {total})", show_header=True, header_style="bold cyan")
    table.add_column("When", style="bold")
    table.add_column("Customer")
    table.add_column("Vehicle")
    table.add_column("Service")
    table.add_column("Location")
    table.add_column("Total", justify="right")
    table.add_column("Paid")
    table.add_column("Id", style="dim")
    for b in bookings:
        r = b.request
        table.add_row(
            f"{r.date.isoformat()} {r.time.strftime('%H:%M')}",
            f"{r.customer}\n[dim]{r.phone} • {r.email}[/dim]",
            f"{r.vehicle} ({r.size.value.upper()})",
            catalog.service_name(r.service_id),
            _location_text(b, catalog),
            _money(b.total, config.currency),
            "[green]yes[/green]" if b.paid else "[red]no[/red]",
            b.id,
        )

    console.print()
    console.print(table)
    console.print()


@admin_app.command("summary")
def admin_summary(pin: PinOption = None, config_file: ConfigOption = None):
    """
    Show booking counts and money totals.
    """
    try:
        config = _load(config_file)
        _require_admin(config, pin)
        service = _build_service(config)
        summary = service.summary()
    except (FileNotFoundError, ValueError, DetailbookError) as e:
        _fail(e)

    catalog = service.engine.catalog
    per_service = "\n".join(
        f"  {catalog.service_name(sid) or sid}: {count}" for sid, count in summary.by_service.items()
    )
    console.print(Panel.fit(
        f"[bold]Total bookings:[/bold] {summary.count}\n"
        f"[bold]Paid:[/bold] {summary.paid_count}\n"
        f"[bold]Revenue:[/bold] {_money(summary.revenue, config.currency)}\n"
        f"[bold]Outstanding:[/bold] {_money(summary.outstanding, config.currency)}"
        + (f"\n\n{per_service}" if per_service else ""),
        title="Bookings dashboard"
    ))


@admin_app.command("toggle-paid")
def admin_toggle_paid(
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Mark a booking paid or unpaid.
    """
    try:
        config = _load(config_file)
        _require_admin(config, pin)
        booking = _build_service(config).toggle_paid(booking_id)
    except (FileNotFoundError, ValueError, DetailbookError) as e:
        _fail(e)

    state = "paid" if booking.paid else "unpaid"
    console.print(f"[green]✓ Booking {booking.id} marked {state}.[/green]")


@admin_app.command("delete")
def admin_delete(
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Delete a booking.
    """
    try:
        config = _load(config_file)
        _require_admin(config, pin)
        if not yes and not typer.confirm("Delete this booking?"):
            raise typer.Abort()
        booking = _build_service(config).delete(booking_id)
    except (FileNotFoundError, ValueError, DetailbookError) as e:
        _fail(e)

    console.print(f"[green]✓ Booking {booking.id} deleted.[/green]")


@admin_app.command("export-csv")
def admin_export_csv(
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Target file. Defaults to bookings-<today>.csv")] = None,
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Export all bookings as CSV.
    """
    try:
        config = _load(config_file)
        _require_admin(config, pin)
        text = _build_service(config).export_csv()
        target = output or Path(f"bookings-{pendulum.today(config.timezone).to_date_string()}.csv")
        target.write_text(text, encoding="utf-8")
    except (FileNotFoundError, ValueError, OSError, DetailbookError) as e:
        _fail(e)

    console.print(f"[green]✓ Exported to {target}[/green]")


@admin_app.command("export-json")
def admin_export_json(
    output: Annotated[Path, typer.Option("--output", "-o", help="Target file")] = Path("bookings-export.json"),
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Export all bookings as JSON.
    """
    try:
        config = _load(config_file)
        _require_admin(config, pin)
        output.write_text(_build_service(config).export_json(), encoding="utf-8")
    except (FileNotFoundError, ValueError, OSError, DetailbookError) as e:
        _fail(e)

    console.print(f"[green]✓ Exported to {output}[/green]")


@admin_app.command("import-json")
def admin_import_json(
    source: Annotated[Path, typer.Argument(help="JSON file produced by export-json")],
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Replace all bookings with the contents of a JSON export.
    """
    try:
        config = _load(config_file)
        _require_admin(config, pin)
        count = _build_service(config).import_json(source.read_text(encoding="utf-8"))
    except (FileNotFoundError, ValueError, OSError, DetailbookError) as e:
        _fail(e)

    console.print(f"[green]✓ Imported {count} booking(s).[/green]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]detailbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
