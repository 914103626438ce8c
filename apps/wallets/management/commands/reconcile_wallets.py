from django.core.management.base import BaseCommand, CommandError

from apps.wallets.ledger import LedgerStore
from apps.wallets.models import Wallet


class Command(BaseCommand):
    help = 'Replays wallet transactions and reports balances that do not match their history'

    def add_arguments(self, parser):
        parser.add_argument('user_ids', nargs='*', help='Only check these users (default: every wallet)')

    def handle(self, *args, **options):
        ledger = LedgerStore()
        user_ids = options['user_ids'] or Wallet.objects.order_by('user_id').values_list('user_id', flat=True)

        checked = 0
        mismatched = []

        for user_id in user_ids:
            report = ledger.reconcile(user_id)
            checked += 1
            if report.consistent:
                self.stdout.write(f"{user_id}: {report.balance} ({report.transactions} transactions)")
            else:
                mismatched.append(user_id)
                self.stdout.write(
                    self.style.ERROR(
                        f"{user_id}: balance {report.balance} != replayed {report.replayed_balance}"
                    )
                )

        self.stdout.write(f"Checked {checked} wallet(s)")

        if mismatched:
            raise CommandError(f"{len(mismatched)} wallet(s) do not reconcile: {', '.join(mismatched)}")

        self.stdout.write(self.style.SUCCESS('All wallets reconcile'))
