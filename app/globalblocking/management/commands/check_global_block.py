"""Management command to show the global block in effect for a target."""

from django.core.management.base import BaseCommand, CommandError

from globalblocking.exceptions import InvalidAddress, StoreUnavailable
from globalblocking.services import GlobalBlockLookup, LookupFlags, ReadConsistency
from globalblocking.services.messages import format_expiry


class Command(BaseCommand):
    help = "Show the global block in effect for an IP address, IP range or account name"

    def add_arguments(self, parser):
        parser.add_argument("target", type=str, help="IP address, CIDR range or account name")
        parser.add_argument(
            "--primary",
            action="store_true",
            help="Read from the primary database instead of a replica",
        )
        parser.add_argument(
            "--skip-address-blocks",
            action="store_true",
            help="Ignore blocks on addresses and ranges",
        )
        parser.add_argument(
            "--skip-soft-blocks",
            action="store_true",
            help="Ignore blocks that only apply to logged-out users",
        )
        parser.add_argument(
            "--skip-local-override-check",
            action="store_true",
            help="Report blocks even if they are disabled on this wiki",
        )

    def handle(self, *args, **options):
        target = options["target"]

        flags = LookupFlags.NONE
        if options["skip_address_blocks"]:
            flags |= LookupFlags.EXCLUDE_ADDRESS_BLOCKS
        if options["skip_soft_blocks"]:
            flags |= LookupFlags.EXCLUDE_SOFT_ADDRESS_BLOCKS
        if options["skip_local_override_check"]:
            flags |= LookupFlags.SKIP_LOCAL_OVERRIDE_CHECK
        read_consistency = (
            ReadConsistency.PRIMARY if options["primary"] else ReadConsistency.REPLICA
        )

        lookup = GlobalBlockLookup.from_settings()
        try:
            resolution = lookup.get_block_for_target(target, flags, read_consistency)
        except InvalidAddress as e:
            raise CommandError(f"Invalid target: {e}")
        except StoreUnavailable as e:
            raise CommandError(str(e))

        if not resolution.is_blocked:
            self.stdout.write(self.style.SUCCESS(f"{target} is not globally blocked"))
            return

        block = resolution.block
        self.stdout.write(self.style.WARNING(f"{target} is globally blocked\n"))
        self.stdout.write(f"  Block ID:    {block.pk}")
        self.stdout.write(f"  Target:      {block.target}")
        self.stdout.write(f"  Blocked by:  {resolution.error.params[1]}")
        self.stdout.write(f"  Reason:      {block.reason}")
        self.stdout.write(f"  Expires:     {format_expiry(block)}")
        if block.anonymous_only:
            self.stdout.write("  Applies to logged-out users only")
        if block.disables_account_creation:
            self.stdout.write("  Account creation disabled")
        self.stdout.write(f"  Message:     {resolution.error.message_key}")
