"""Command line interface for the pandit booking dashboards."""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import List

from . import aggregator, api, auth, calendar_grid, directory, signup, util, viewmodels
from .dates import resolve_date

WEEKDAY_HEADER = " ".join(f"{d:>2} " for d in ("Su", "Mo", "Tu", "We", "Th", "Fr", "Sa"))


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--base-url", help="Backend URL (default $PANDIT_BOOKING_API_URL)")
    common.add_argument("--dump-json", action="store_true")
    common.add_argument(
        "--offline", action="store_true", help="Use saved JSON fixtures"
    )
    common.add_argument("--verbose", action="store_true")

    parser = argparse.ArgumentParser(description="Pandit booking dashboards")
    sub = parser.add_subparsers(dest="command", required=True)

    history = sub.add_parser("history", parents=[common], help="Booking history analytics")
    history.add_argument("--status", default=aggregator.ALL_STATUSES)
    history.add_argument("--date", default="", help="Date prefix, e.g. 2024-01")
    history.add_argument("--group", choices=aggregator.GROUPINGS, default="month")
    history.add_argument("--limit", type=int, default=10, help="Bookings to list")

    cal = sub.add_parser("calendar", parents=[common], help="Month calendar of bookings")
    cal.add_argument("--month", help="YYYY-MM (default current month)")

    sub.add_parser("dashboard", parents=[common], help="Pandit dashboard summary")

    login = sub.add_parser("login", parents=[common], help="Log in and cache the session")
    login.add_argument("--email", required=True)
    login.add_argument("--role", choices=("devotee", "pandit"), default="devotee")

    sub.add_parser("logout", parents=[common], help="Clear the cached session")

    sub.add_parser("admin", parents=[common], help="Platform overview counts")

    pandits = sub.add_parser("pandits", parents=[common], help="Pandit directory")
    pandits.add_argument("--name", default="")
    pandits.add_argument("--city", default="")
    pandits.add_argument("--experience", default="", help="Exact years of experience")
    action = pandits.add_mutually_exclusive_group()
    action.add_argument("--verify", metavar="ID")
    action.add_argument("--delete", metavar="ID")
    action.add_argument("--photo", nargs=2, metavar=("ID", "FILE"))

    devotees = sub.add_parser("devotees", parents=[common], help="Devotee directory")
    devotees.add_argument("--name", default="")
    devotees.add_argument("--city", default="")
    devotees.add_argument("--edit", metavar="ID")
    devotees.add_argument(
        "--set", action="append", default=[], metavar="FIELD=VALUE", help="Use with --edit"
    )

    poojas = sub.add_parser("poojas", parents=[common], help="Pooja catalogue")
    poojas.add_argument("--search", default="")
    change = poojas.add_mutually_exclusive_group()
    change.add_argument("--add", metavar="NAME")
    change.add_argument("--update", metavar="ID")
    change.add_argument("--delete", metavar="ID")
    poojas.add_argument("--name", help="New name, with --update")
    poojas.add_argument("--description")
    poojas.add_argument("--image-url")

    register = sub.add_parser("signup", parents=[common], help="Register as a pandit")
    register.add_argument("--name", required=True)
    register.add_argument("--phone", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--city", default="")
    register.add_argument("--experience", default="")
    register.add_argument("--languages", default="", help="Comma separated")
    register.add_argument("--specialties", default="", help="Comma separated")
    register.add_argument("--bio", default="")
    register.add_argument("--photo-url", default="")
    return parser.parse_args(argv)


def _token(args: argparse.Namespace) -> str | None:
    if args.offline:
        return None
    try:
        return auth.acquire_token()
    except RuntimeError as exc:
        logging.debug("Continuing without token: %s", exc)
        return None


def render_history(vm: viewmodels.BookingHistoryViewModel, limit: int) -> str:
    agg = vm.aggregate
    lines = [vm.chart_title, vm.summary, ""]
    if not agg.series:
        lines.append("No bookings to chart.")
    width = max((len(key) for key, _ in agg.series), default=0)
    for key, count in agg.series:
        lines.append(f"{key:<{width}} {'#' * count} {count}")
    lines.append("")
    lines.append(f"Total bookings: {agg.total}  Matching filters: {agg.filtered_total}")
    for status, count in sorted(agg.status_counts.items()):
        lines.append(f"  {status:<10} {count}")
    lines.append("")
    for b in agg.filtered_records[:limit]:
        lines.append(
            f"{resolve_date(b) or '--':<10} {b.puja_time or '--':<8} "
            f"{aggregator.normalize_status(b.status_raw):<10} {b.pandit_name} / "
            f"{b.devotee_name} @ {b.location_display}"
        )
    return "\n".join(lines)


def render_calendar(year: int, month: int, booked: dict) -> str:
    title = date(year, month + 1, 1).strftime("%B %Y")
    lines = [title.center(len(WEEKDAY_HEADER)), WEEKDAY_HEADER]
    for row in calendar_grid.grid_rows(calendar_grid.build_month_grid(year, month)):
        cells = []
        for cell in row:
            if cell is None:
                cells.append("   ")
            else:
                cells.append(f"{cell.day:>2}" + ("*" if cell in booked else " "))
        lines.append(" ".join(cells).rstrip())
    return "\n".join(lines)


def render_dashboard(vm: viewmodels.PanditDashboardViewModel) -> str:
    stats = vm.stats
    lines = [
        f"Namaste, {vm.session.name or 'Pandit'}",
        f"Bookings: {stats.total}  Confirmed: {stats.confirmed}  "
        f"Pending: {stats.pending}  Rejected: {stats.rejected}",
        f"Unique devotees: {stats.unique_devotees}  "
        f"Acceptance rate: {stats.acceptance_rate}%  "
        f"Est. earnings: Rs {stats.estimated_earnings}",
    ]
    if vm.top_services:
        lines.append("Top pujas: " + ", ".join(f"{n} ({c})" for n, c in vm.top_services))
    upcoming = vm.upcoming
    lines.append("Upcoming:")
    for b in upcoming:
        lines.append(f"  {resolve_date(b)} at {b.puja_time or '--'} {b.service_name}")
    if not upcoming:
        lines.append("  none")
    return "\n".join(lines)


def render_admin(vm: directory.AdminHomeViewModel) -> str:
    c = vm.counts
    return "\n".join(
        [
            "Platform overview",
            f"Devotees: {c['devotees']}  Pandits: {c['pandits']}  Bookings: {c['bookings']}",
        ]
    )


def render_pandits(vm: directory.PanditDirectoryViewModel) -> str:
    lines = [f"Pandits: {vm.total}  Verified: {vm.verified}  Pending: {vm.pending}"]
    for p in vm.filtered:
        years = "-" if p.experience_years is None else f"{p.experience_years}y"
        state = "verified" if p.is_verified else "pending"
        lines.append(f"  {p.id:<10} {p.name:<24} {p.city or '-':<12} {years:<4} {state}")
    return "\n".join(lines)


def render_devotees(vm: directory.DevoteeDirectoryViewModel) -> str:
    lines = [f"Devotees: {vm.total}  With city: {vm.with_city}"]
    for d in vm.filtered:
        lines.append(
            f"  {d.id:<10} {d.name:<24} {d.email or '-':<28} {d.phone or '-':<12} {d.city or '-'}"
        )
    return "\n".join(lines)


def render_poojas(vm: directory.PoojaManagementViewModel) -> str:
    lines = [f"Poojas: {len(vm.poojas)}"]
    for p in vm.filtered:
        lines.append(f"  {p.id:<10} {p.name:<24} {p.description}")
    return "\n".join(lines)


def _pandits(args: argparse.Namespace, client: api.APIClient) -> int:
    vm = directory.PanditDirectoryViewModel(client)
    vm.load()
    ok = True
    if args.verify:
        ok = vm.verify(args.verify)
    elif args.delete:
        ok = vm.delete(args.delete)
    elif args.photo:
        ok = vm.upload_photo(args.photo[0], Path(args.photo[1]))
    vm.filters.update(name=args.name, city=args.city, experience=args.experience)
    print(render_pandits(vm))
    if not ok:
        print("Pandit update failed", file=sys.stderr)
    return 0 if ok else 1


def _devotees(args: argparse.Namespace, client: api.APIClient) -> int:
    vm = directory.DevoteeDirectoryViewModel(client)
    vm.load()
    ok = True
    if args.edit:
        for item in args.set:
            field_name, sep, value = item.partition("=")
            if not sep:
                print(f"Expected FIELD=VALUE, got {item!r}", file=sys.stderr)
                return 2
            vm.edit(args.edit, field_name, value)
        ok = vm.save(args.edit)
    vm.filters.update(name=args.name, city=args.city)
    print(render_devotees(vm))
    if not ok:
        print("Devotee update failed", file=sys.stderr)
    return 0 if ok else 1


def _poojas(args: argparse.Namespace, client: api.APIClient) -> int:
    vm = directory.PoojaManagementViewModel(client)
    vm.load()
    ok = True
    if args.delete:
        ok = vm.delete(args.delete)
    elif args.add or args.update:
        if args.update:
            current = next((p for p in vm.poojas if p.id == args.update), None)
            if current is None:
                print(f"No pooja with id {args.update}", file=sys.stderr)
                return 1
            vm.start_edit(current)
        else:
            vm.form.name = args.add
        if args.name is not None:
            vm.form.name = args.name
        if args.description is not None:
            vm.form.description = args.description
        if args.image_url is not None:
            vm.form.image_url = args.image_url
        ok = vm.submit()
    vm.search = args.search
    if vm.message.text:
        print(vm.message.text, file=sys.stdout if ok else sys.stderr)
    print(render_poojas(vm))
    return 0 if ok else 1


def _signup(args: argparse.Namespace, client: api.APIClient) -> int:
    form = signup.PanditSignupForm()
    values = {
        "name": args.name,
        "phone": args.phone,
        "email": args.email,
        "city": args.city,
        "experience_years": args.experience,
        "languages": args.languages,
        "specialties": args.specialties,
        "bio": args.bio,
        "profile_photo_url": args.photo_url,
    }
    for name, value in values.items():
        form.set(name, value)
    password = os.getenv("PANDIT_BOOKING_PASSWORD")
    form.set("password", password or getpass.getpass())
    form.set("confirm_password", password or getpass.getpass("Confirm password: "))

    while form.step < signup.LAST_STEP:
        if not form.next_step():
            print(f"Step {form.step}: {form.error}", file=sys.stderr)
            return 1
    if not form.submit(client):
        print(f"Signup failed: {form.error}", file=sys.stderr)
        return 1
    print("Registered. Your profile will be visible once an admin verifies it.")
    return 0


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    util.configure_logging(args.verbose)

    if args.command == "logout":
        auth.logout()
        return 0

    client = api.APIClient(
        _token(args),
        base_url=args.base_url,
        dump_json=args.dump_json,
        offline=args.offline,
    )

    if args.command == "login":
        password = os.getenv("PANDIT_BOOKING_PASSWORD") or getpass.getpass()
        session = auth.login(client, args.email, password, role=args.role)
        print(f"Logged in as {session.name or session.email}")
        return 0

    if args.command == "history":
        vm = viewmodels.BookingHistoryViewModel(client)
        vm.status_filter = args.status.lower()
        vm.date_filter = args.date
        vm.set_grouping(args.group)
        vm.load()
        print(render_history(vm, args.limit))
        return 0

    if args.command == "calendar":
        if args.month:
            first = date.fromisoformat(args.month + "-01")
        else:
            first = util.today()
        vm = viewmodels.BookingHistoryViewModel(client)
        vm.load()
        booked = calendar_grid.bookings_by_day(vm.bookings)
        print(render_calendar(first.year, first.month - 1, booked))
        return 0

    if args.command == "admin":
        vm = directory.AdminHomeViewModel(client)
        vm.load()
        print(render_admin(vm))
        return 0

    handlers = {
        "pandits": _pandits,
        "devotees": _devotees,
        "poojas": _poojas,
        "signup": _signup,
    }
    if args.command in handlers:
        return handlers[args.command](args, client)

    session = auth.load_session()
    if not session or session.role != "pandit":
        print("Log in as a pandit first (pandit-booking login --role pandit)", file=sys.stderr)
        return 1
    vm = viewmodels.PanditDashboardViewModel(client, session)
    vm.load()
    print(render_dashboard(vm))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
