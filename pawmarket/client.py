"""
PawMarket client facade and command line entry point.
Wires settings, session, API client, notifications and views together.
"""

import argparse
import asyncio
import getpass
import sys
from typing import List, Optional
import httpx
from loguru import logger

from .config import settings
from .notifications import Notifier, ToastKind
from .session import SessionStore, Navigator, AuthContext, default_session
from .utils.api_clients import ApiClient
from .utils.helpers import format_pet_card
from .views import (
    DiscoveryFeed, UserDashboard, PetDetailView, FavoritesView, LikeToggle,
    PetFormView, GroupsBrowser, GroupDetailView, GroupManager, MyGroups,
    AccountSettingsView, AdminDashboard,
)


class PawMarketClient:
    """
    Entry point for scripts and the CLI.

    Owns one ``ApiClient`` and hands it to every view it creates. Use it as
    an async context manager so the HTTP connection pool gets closed.
    """

    def __init__(
        self,
        session: Optional[SessionStore] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session if session is not None else default_session()
        self.navigator = Navigator()
        self.notifier = Notifier()
        self.api = ApiClient(
            session=self.session,
            navigator=self.navigator,
            base_url=base_url,
            transport=transport,
        )
        self.auth = AuthContext(self.api, self.session, self.navigator, self.notifier)
        logger.debug(f"PawMarket client ready for {self.api.base_url}")

    async def __aenter__(self) -> "PawMarketClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.api.aclose()

    def feed(self) -> DiscoveryFeed:
        return DiscoveryFeed(self.api, self.auth, self.notifier)

    def dashboard(self) -> UserDashboard:
        return UserDashboard(self.api, self.auth)

    def pet_detail(self) -> PetDetailView:
        return PetDetailView(self.api, self.auth, self.notifier)

    def likes(self) -> LikeToggle:
        return LikeToggle(self.api, self.auth, self.notifier)

    def favorites(self) -> FavoritesView:
        return FavoritesView(self.api, self.auth, self.notifier)

    def pet_form(self) -> PetFormView:
        return PetFormView(self.api, self.auth, self.notifier)

    def groups(self) -> GroupsBrowser:
        return GroupsBrowser(self.api, self.auth, self.notifier)

    def group_detail(self) -> GroupDetailView:
        return GroupDetailView(self.api, self.auth, self.notifier)

    def group_manager(self, group_id: str) -> GroupManager:
        return GroupManager(self.api, group_id, self.auth, self.notifier)

    def my_groups(self) -> MyGroups:
        return MyGroups(self.api, self.notifier)

    def account(self) -> AccountSettingsView:
        return AccountSettingsView(self.api, self.auth, self.notifier)

    def admin(self) -> AdminDashboard:
        return AdminDashboard(self.api, self.auth, self.notifier)


def _print_pets(title: str, pets, limit: Optional[int] = None) -> None:
    pets = pets[:limit] if limit else pets
    print(f"\n=== {title} ({len(pets)}) ===")
    for i, pet in enumerate(pets, 1):
        card = format_pet_card(pet)
        print(f"{i}. {card['title']} [{card['id']}]")
        if card["subtitle"]:
            print(f"   {card['subtitle']}")
        print(f"   {card['fee']} | {card['status']} | {card['likes']} likes")


def _print_toasts(notifier: Notifier) -> None:
    for toast in notifier.drain():
        prefix = {"success": "✔", "error": "✖", "info": "i"}[ToastKind(toast.kind).value]
        print(f"{prefix} {toast.message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pawmarket", description="PawMarket pet adoption marketplace client")
    parser.add_argument("--api-url", default=None, help="REST API base URL")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and store the session")
    login.add_argument("email")
    login.add_argument("--password", default=None, help="Prompted for when omitted")

    sub.add_parser("logout", help="Forget the stored session")
    sub.add_parser("whoami", help="Show the logged in user")

    browse = sub.add_parser("browse", help="Browse pets")
    browse.add_argument("--search", default="")
    browse.add_argument("--category", default="")
    browse.add_argument("--breed", default="")
    browse.add_argument("--gender", default="")
    browse.add_argument("--size", default="")
    browse.add_argument("--location", default="")
    browse.add_argument("--urgency", default="")
    browse.add_argument("--origin-type", default="")
    browse.add_argument("--sort", default="")
    browse.add_argument("--page", type=int, default=1)
    browse.add_argument("--lat", type=float, default=None)
    browse.add_argument("--lon", type=float, default=None)

    pet = sub.add_parser("pet", help="Show one pet")
    pet.add_argument("pet_id")

    like = sub.add_parser("like", help="Like or unlike a pet")
    like.add_argument("pet_id")

    sub.add_parser("favorites", help="List liked pets")
    sub.add_parser("dashboard", help="Show your dashboard")

    groups = sub.add_parser("groups", help="Browse community groups")
    groups.add_argument("--search", default="")
    groups.add_argument("--page", type=int, default=1)

    sub.add_parser("admin-stats", help="Site statistics (admins only)")
    return parser


async def run_command(args, client: PawMarketClient) -> int:
    """Execute one parsed CLI command; returns the exit code."""
    command = args.command

    if command == "login":
        password = args.password or getpass.getpass("Password: ")
        return 0 if await client.auth.login(args.email, password) else 1

    if command == "logout":
        client.auth.logout()
        print("Logged out")
        return 0

    if command == "whoami":
        if not client.auth.is_authenticated:
            print("Not logged in")
            return 1
        user = await client.auth.refresh_profile()
        if user is None:
            print("Not logged in")
            return 1
        print(f"{user.name} <{user.email}> ({client.auth.role})")
        return 0

    if command == "browse":
        feed = client.feed()
        for key in ("category", "breed", "gender", "size", "location", "urgency", "origin_type", "sort", "search"):
            feed.set_filter(key, getattr(args, key))
        await feed.apply_filters()
        if args.page > 1:
            await feed.go_to_page(args.page)
        await feed.load_featured(args.lat, args.lon)
        for name, pets in feed.featured().items():
            if pets:
                _print_pets(name.title(), pets)
        _print_pets(f"Pets (page {feed.pagination.page} of {feed.pagination.pages})", feed.main_grid)
        return 0

    if command == "pet":
        view = client.pet_detail()
        pet = await view.load(args.pet_id)
        if pet is None:
            return 1
        card = format_pet_card(pet)
        print(f"\n{card['title']}\n{card['subtitle']}\n{card['fee']} | {card['status']}")
        if card["posted"]:
            print(f"Posted {card['posted']}")
        print(f"\n{pet.description}\n\nShare: {view.share_link()}")
        if view.similar_pets:
            _print_pets("Similar pets", view.similar_pets)
        return 0

    if command == "like":
        if not client.auth.is_authenticated:
            print("Please login first")
            return 1
        view = client.pet_detail()
        if await view.load(args.pet_id) is None:
            return 1
        state = await view.like()
        print(f"{'Liked' if state.is_liked else 'Not liked'} ({state.like_count} likes)")
        return 0

    if command == "favorites":
        if client.auth.guard("/favorites") != "/favorites":
            print("Please login first")
            return 1
        view = client.favorites()
        _print_pets("Favorites", await view.load())
        return 0

    if command == "dashboard":
        if client.auth.guard("/dashboard") != "/dashboard":
            print("Please login first")
            return 1
        dashboard = client.dashboard()
        await dashboard.load()
        for key, value in dashboard.metrics().items():
            print(f"{key.replace('_', ' ').title()}: {value}")
        for name in ("posted", "favorites", "recommended"):
            _print_pets(name.title(), dashboard.section(name))
        return 0

    if command == "groups":
        browser = client.groups()
        if args.search:
            await browser.search(args.search)
        else:
            await browser.fetch()
        if args.page > 1:
            await browser.go_to_page(args.page)
        print(f"\n=== Groups (page {browser.pagination.page} of {browser.pagination.pages}) ===")
        for group in browser.groups:
            location = group.location.label()
            print(f"- {group.name} [{group.id}] {group.member_count} members{' | ' + location if location else ''}")
        return 0

    if command == "admin-stats":
        admin = client.admin()
        if not await admin.load():
            return 1
        for key, value in admin.stats.items():
            print(f"{key}: {value}")
        return 0

    return 2


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line client."""
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    async with PawMarketClient(base_url=args.api_url) as client:
        try:
            code = await run_command(args, client)
        finally:
            _print_toasts(client.notifier)
    return code


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
