"""Create the demo sign-in account used by the browser client."""

from __future__ import annotations

from django.core.management.base import BaseCommand

from accounts.services import DEMO_EMAIL, DEMO_NAME, DEMO_PASSWORD, create_account, find_user_by_email


class Command(BaseCommand):
    help = "Create (or refresh) the demo user account."

    def add_arguments(self, parser) -> None:
        parser.add_argument("--email", default=DEMO_EMAIL)
        parser.add_argument("--password", default=DEMO_PASSWORD)
        parser.add_argument("--name", default=DEMO_NAME)
        parser.add_argument(
            "--staff",
            action="store_true",
            help="Grant staff access so the account can use the ops endpoints.",
        )

    def handle(self, *args, **options) -> None:
        user = find_user_by_email(options["email"])
        if user is None:
            user = create_account(
                name=options["name"],
                email=options["email"],
                password=options["password"],
                is_staff=options["staff"],
            )
            self.stdout.write(f"Created demo user {user.email}.")
            return

        user.set_password(options["password"])
        if options["staff"]:
            user.is_staff = True
        user.save(update_fields=["password", "is_staff"])
        self.stdout.write(f"Demo user {user.email} already exists; password refreshed.")
