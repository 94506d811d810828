"""
Interactive Console

Text menu for entering transactions, defining interest rules and printing
statements. Parsing stays shallow here: the service validates everything and
its errors are shown to the user before prompting again.
"""

from typing import Callable, List, Optional

from .config import get_config
from .errors import LedgerError
from .logging_config import get_logger
from .money import format_amount, format_date
from .rates import RateRule
from .service import BankingService
from .statements import Statement, StatementLine

MENU_OPTIONS = """    [T] Input transactions
    [I] Define interest rules
    [P] Print statement
    [Q] Quit"""

TRANSACTION_PROMPT = (
    "Please enter transaction details in <Date> <Account> <Type> <Amount> format\n"
    "(or enter blank to go back to main menu):"
)
RULE_PROMPT = (
    "Please enter interest rules details in <Date> <RuleId> <Rate in %> format\n"
    "(or enter blank to go back to main menu):"
)
STATEMENT_PROMPT = (
    "Please enter account and month to generate the statement <Account> <Year><Month>\n"
    "(or enter blank to go back to main menu):"
)


def render_history(account_id: str, lines: List[StatementLine]) -> List[str]:
    """Transaction table shown after a transaction is recorded"""
    output = [f"Account: {account_id}", "| Date     | Txn Id      | Type | Amount  |"]
    for line in lines:
        row = line.to_dict()
        output.append(
            f"| {row['date']} | {row['transaction_id']:<11} | {row['type']:<4} | {row['amount']:>7} |"
        )
    return output


def render_rules(rules: List[RateRule]) -> List[str]:
    output = ["Interest rules:", "| Date     | RuleId | Rate (%) |"]
    for rule in rules:
        output.append(
            f"| {format_date(rule.effective_date)} | {rule.rule_id:<6} | "
            f"{format_amount(rule.annual_rate_percent):>8} |"
        )
    return output


def render_statement(statement: Statement) -> List[str]:
    output = [
        f"Account: {statement.account_id}",
        "| Date     | Txn Id      | Type | Amount  | Balance  |"
    ]
    for line in statement.lines:
        row = line.to_dict()
        output.append(
            f"| {row['date']} | {row['transaction_id']:<11} | {row['type']:<4} | "
            f"{row['amount']:>7} | {row['balance']:>8} |"
        )
    return output


class BankConsole:
    """Menu loop over a BankingService with injectable input and output"""

    def __init__(
        self,
        service: Optional[BankingService] = None,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
        bank_name: Optional[str] = None
    ):
        self.service = service or BankingService()
        self.input_fn = input_fn
        self.output_fn = output_fn
        self.bank_name = bank_name or get_config().bank_name
        self.logger = get_logger("bank_ledger.console")

    def run(self) -> None:
        """Show the main menu until the user quits or input ends"""
        self._show_menu(f"Welcome to {self.bank_name}! What would you like to do?")

        while True:
            choice = self._read()
            if choice is None:
                break

            choice = choice.strip().upper()
            if choice == "T":
                self._input_transactions()
            elif choice == "I":
                self._define_rules()
            elif choice == "P":
                self._print_statement()
            elif choice == "Q":
                break
            else:
                self.output_fn("Invalid option. Please try again.")

            self._show_menu("Is there anything else you'd like to do?")

        self.output_fn(f"Thank you for banking with {self.bank_name}.")
        self.output_fn("Have a nice day!")

    def _input_transactions(self) -> None:
        self._sub_menu(TRANSACTION_PROMPT, 4, self._handle_transaction)

    def _define_rules(self) -> None:
        self._sub_menu(RULE_PROMPT, 3, self._handle_rule)

    def _print_statement(self) -> None:
        self._sub_menu(STATEMENT_PROMPT, 2, self._handle_statement)

    def _sub_menu(self, prompt: str, field_count: int, handler: Callable[[List[str]], List[str]]) -> None:
        """Prompt until one entry succeeds or the user enters a blank line"""
        while True:
            self.output_fn("")
            self.output_fn(prompt)
            entry = self._read()
            if entry is None or not entry.strip():
                return

            parts = entry.split()
            if len(parts) != field_count:
                self.output_fn("Invalid input format. Please try again.")
                continue

            try:
                output = handler(parts)
            except LedgerError as e:
                self.logger.debug(f"Rejected console input: {e}")
                self.output_fn(str(e))
                continue

            self.output_fn("")
            for line in output:
                self.output_fn(line)
            return

    def _handle_transaction(self, parts: List[str]) -> List[str]:
        date_str, account_id, type_code, amount = parts
        receipt = self.service.record_transaction(date_str, account_id, type_code, amount)
        return render_history(account_id, receipt.history)

    def _handle_rule(self, parts: List[str]) -> List[str]:
        date_str, rule_id, rate = parts
        return render_rules(self.service.define_rate(date_str, rule_id, rate))

    def _handle_statement(self, parts: List[str]) -> List[str]:
        account_id, year_month = parts
        return render_statement(self.service.print_statement(account_id, year_month))

    def _show_menu(self, title: str) -> None:
        self.output_fn(title)
        self.output_fn(MENU_OPTIONS)

    def _read(self) -> Optional[str]:
        try:
            return self.input_fn("> ")
        except EOFError:
            return None
