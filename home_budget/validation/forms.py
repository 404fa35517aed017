"""
Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - FIELD PARSING:
- Required field presence
- Amount parses as a positive number
- ISO dates, enum values, integer ranges
- This catches what a user typed wrong

STAGE 2 - SEMANTIC CHECKS:
- Dates too far in the future
- Inconsistent ranges (budget year ends before it starts)
- This catches values that parse but look wrong

Only stage 1 (and range errors) block submission. Future dates are
warnings: the request is still built.

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
whitespace. It reports them so the form can show them.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError

from home_budget.config import get_settings
from home_budget.models import (
    CreateAssetSnapshotRequest,
    CreateBudgetYearRequest,
    CreateCategoryRequest,
    CreateDebtRequest,
    CreateExpenseRequest,
    CreateFundRequest,
    CreateIncomeRequest,
    CreateNoteRequest,
    CreateTaskRequest,
    CreateTitheRequest,
    DebtType,
    FundType,
    ValidationIssue,
    ValidationResult,
)


Form = Mapping[str, Any]


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value: Any) -> Optional[str]:
    if _blank(value):
        return None
    return str(value).strip()


class FormValidator:
    """
    Validates raw form input per resource before submit.

    Each validate_* method returns a ValidationResult whose request is the
    typed create request when there are no error-level issues.
    """

    def __init__(
        self,
        today: Optional[Callable[[], date]] = None,
        future_date_tolerance_days: Optional[int] = None,
    ):
        """
        Initialize validator.

        Args:
            today: Clock for the future-date check (tests pin it).
            future_date_tolerance_days: Days ahead a date may be before a
                warning. Defaults to the configured value.
        """
        self._today = today or date.today
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().app.future_date_tolerance_days
        self._tolerance = timedelta(days=future_date_tolerance_days)

    # -------------------------------------------------------------------------
    # Field parsers (stage 1)
    # -------------------------------------------------------------------------

    def parse_amount(
        self,
        raw: Any,
        issues: list[ValidationIssue],
        field: str = "amount",
        allow_zero: bool = False,
    ) -> Optional[Decimal]:
        """Parse a money amount; must be a positive finite number."""
        if _blank(raw):
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter an amount",
            ))
            return None

        try:
            if isinstance(raw, Decimal):
                amount = raw
            elif isinstance(raw, (int, float)):
                amount = Decimal(str(raw))
            else:
                amount = Decimal(str(raw).strip().replace(",", ""))
        except InvalidOperation:
            amount = None

        if amount is None or not amount.is_finite():
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"'{raw}' is not a number",
                severity="error",
                suggested_fix="Use digits only, e.g. 120.50",
            ))
            return None

        if amount < 0 or (amount == 0 and not allow_zero):
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_positive",
                message="Amount must be greater than zero",
                severity="error",
            ))
            return None

        return amount

    def parse_required_text(
        self,
        raw: Any,
        issues: list[ValidationIssue],
        field: str,
        label: str,
    ) -> Optional[str]:
        text = _text(raw)
        if text is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
                severity="error",
            ))
        return text

    def parse_date(
        self,
        raw: Any,
        issues: list[ValidationIssue],
        field: str = "date",
        required: bool = True,
    ) -> Optional[date]:
        if _blank(raw):
            if required:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message="Date is required",
                    severity="error",
                ))
            return None
        if isinstance(raw, date):
            return raw
        try:
            return date.fromisoformat(str(raw).strip()[:10])
        except ValueError:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"'{raw}' is not a valid date",
                severity="error",
                suggested_fix="Use the YYYY-MM-DD format",
            ))
            return None

    def parse_int(
        self,
        raw: Any,
        issues: list[ValidationIssue],
        field: str,
        minimum: int,
        maximum: int,
    ) -> Optional[int]:
        if _blank(raw):
            return None
        try:
            value = int(str(raw).strip())
        except ValueError:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"'{raw}' is not a whole number",
                severity="error",
            ))
            return None
        if not minimum <= value <= maximum:
            issues.append(ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message=f"{field} must be between {minimum} and {maximum}",
                severity="error",
            ))
            return None
        return value

    def parse_choice(
        self,
        raw: Any,
        issues: list[ValidationIssue],
        field: str,
        enum: Type,
        default: Any = None,
    ) -> Any:
        if _blank(raw):
            if default is None:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field} is required",
                    severity="error",
                ))
            return default
        try:
            return enum(str(raw).strip())
        except ValueError:
            allowed = ", ".join(m.value for m in enum)
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"'{raw}' is not one of: {allowed}",
                severity="error",
            ))
            return None

    @staticmethod
    def parse_bool(raw: Any) -> bool:
        if isinstance(raw, str):
            return raw.strip().lower() in {"1", "true", "yes", "on"}
        return bool(raw)

    # -------------------------------------------------------------------------
    # Semantic checks (stage 2)
    # -------------------------------------------------------------------------

    def check_future_date(
        self,
        day: Optional[date],
        issues: list[ValidationIssue],
        field: str = "date",
    ) -> None:
        if day is None:
            return
        if day > self._today() + self._tolerance:
            issues.append(ValidationIssue(
                field=field,
                issue_type="future_date",
                message=f"Date ({day.isoformat()}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

    # -------------------------------------------------------------------------
    # Result assembly
    # -------------------------------------------------------------------------

    @staticmethod
    def _finish(
        issues: list[ValidationIssue],
        request_model: Type[BaseModel],
        values: dict[str, Any],
    ) -> ValidationResult:
        if any(issue.severity == "error" for issue in issues):
            return ValidationResult(is_valid=False, issues=issues)
        try:
            request = request_model.model_validate(values)
        except ValidationError as e:
            for error in e.errors():
                issues.append(ValidationIssue(
                    field=".".join(str(p) for p in error["loc"]) or "form",
                    issue_type="invalid_value",
                    message=error["msg"],
                    severity="error",
                ))
            return ValidationResult(is_valid=False, issues=issues)
        return ValidationResult(is_valid=True, issues=issues, request=request)

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    def validate_expense(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        name = self.parse_required_text(form.get("name"), issues, "name", "Name")
        amount = self.parse_amount(form.get("amount"), issues)
        day = self.parse_date(form.get("date"), issues)
        category_id = _text(form.get("category_id"))
        category = _text(form.get("category"))
        if category_id is None and category is None:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))
        self.check_future_date(day, issues)
        return self._finish(issues, CreateExpenseRequest, {
            "name": name,
            "amount": amount,
            "category_id": category_id,
            "category": category,
            "fund_id": _text(form.get("fund_id")),
            "fund": _text(form.get("fund")),
            "date": day,
            "note": _text(form.get("note")),
            "budget_year_id": _text(form.get("budget_year_id")),
        })

    def validate_income(self, form: Form) -> ValidationResult:
        """Month and year are taken from the date unless given."""
        issues: list[ValidationIssue] = []
        name = self.parse_required_text(form.get("name"), issues, "name", "Name")
        amount = self.parse_amount(form.get("amount"), issues)
        day = self.parse_date(form.get("date"), issues)
        month = self.parse_int(form.get("month"), issues, "month", 1, 12)
        year = self.parse_int(form.get("year"), issues, "year", 1900, 9999)
        if day is not None and month is not None and month != day.month:
            issues.append(ValidationIssue(
                field="month",
                issue_type="inconsistent",
                message="Month does not match the date",
                severity="warning",
            ))
        self.check_future_date(day, issues)
        return self._finish(issues, CreateIncomeRequest, {
            "name": name,
            "amount": amount,
            "date": day,
            "source": _text(form.get("source")),
            "note": _text(form.get("note")),
            "budget_year_id": _text(form.get("budget_year_id")),
            "month": month,
            "year": year,
        })

    def validate_tithe(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        description = self.parse_required_text(
            form.get("description"), issues, "description", "Description",
        )
        amount = self.parse_amount(form.get("amount"), issues)
        day = self.parse_date(form.get("date"), issues)
        self.check_future_date(day, issues)
        return self._finish(issues, CreateTitheRequest, {
            "description": description,
            "amount": amount,
            "date": day,
            "note": _text(form.get("note")),
        })

    def validate_fund(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        name = self.parse_required_text(form.get("name"), issues, "name", "Name")
        fund_type = self.parse_choice(form.get("type"), issues, "type", FundType)
        level = self.parse_int(form.get("level"), issues, "level", 1, 3)
        categories = form.get("categories") or []
        if isinstance(categories, str):
            categories = [c.strip() for c in categories.split(",") if c.strip()]
        return self._finish(issues, CreateFundRequest, {
            "name": name,
            "type": fund_type,
            "level": level or 1,
            "include_in_budget": self.parse_bool(form.get("include_in_budget", True)),
            "categories": list(categories),
        })

    def validate_debt(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        description = self.parse_required_text(
            form.get("description"), issues, "description", "Description",
        )
        amount = self.parse_amount(form.get("amount"), issues)
        debt_type = self.parse_choice(form.get("type"), issues, "type", DebtType)
        return self._finish(issues, CreateDebtRequest, {
            "description": description,
            "amount": amount,
            "note": _text(form.get("note")),
            "type": debt_type,
            "is_paid": self.parse_bool(form.get("is_paid", False)),
        })

    def validate_task(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        title = self.parse_required_text(form.get("title"), issues, "title", "Title")
        return self._finish(issues, CreateTaskRequest, {
            "title": title,
            "important": self.parse_bool(form.get("important", False)),
            "completed": self.parse_bool(form.get("completed", False)),
        })

    def validate_asset_snapshot(self, form: Form) -> ValidationResult:
        """Every asset and liability value must be a non-negative number."""
        issues: list[ValidationIssue] = []
        day = self.parse_date(form.get("date"), issues)
        maps: dict[str, dict[str, Decimal]] = {}
        for group in ("assets", "liabilities"):
            parsed: dict[str, Decimal] = {}
            for label, raw in (form.get(group) or {}).items():
                if _blank(raw):
                    continue
                value = self.parse_amount(
                    raw, issues, field=f"{group}.{label}", allow_zero=True,
                )
                if value is not None:
                    parsed[str(label)] = value
            maps[group] = parsed
        self.check_future_date(day, issues)
        return self._finish(issues, CreateAssetSnapshotRequest, {
            "assets": maps["assets"],
            "liabilities": maps["liabilities"],
            "note": _text(form.get("note")),
            "date": day,
        })

    def validate_budget_year(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        start = self.parse_date(form.get("start_date"), issues, "start_date")
        end = self.parse_date(form.get("end_date"), issues, "end_date")
        if start and end and end < start:
            issues.append(ValidationIssue(
                field="end_date",
                issue_type="inconsistent",
                message="End date is before start date",
                severity="error",
            ))
        return self._finish(issues, CreateBudgetYearRequest, {
            "name": _text(form.get("name")),
            "start_date": start,
            "end_date": end,
        })

    def validate_category(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        name = self.parse_required_text(form.get("name"), issues, "name", "Name")
        return self._finish(issues, CreateCategoryRequest, {
            "name": name,
            "fund_id": _text(form.get("fund_id")),
            "fund": _text(form.get("fund")),
            "color_class": _text(form.get("color_class")),
        })

    def validate_note(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        title = _text(form.get("title")) or ""
        content = _text(form.get("content")) or ""
        if not title and not content:
            issues.append(ValidationIssue(
                field="content",
                issue_type="missing",
                message="A note needs a title or some content",
                severity="error",
            ))
        return self._finish(issues, CreateNoteRequest, {
            "title": title,
            "content": content,
        })

    # -------------------------------------------------------------------------
    # Inline edit
    # -------------------------------------------------------------------------

    def validate_field(self, field: str, raw: Any) -> ValidationResult:
        """
        Validate one inline-edited cell.

        request holds the parsed value: Decimal for amounts, str (or None
        for an emptied optional text) otherwise.
        """
        issues: list[ValidationIssue] = []
        if field == "amount":
            value: Any = self.parse_amount(raw, issues)
        elif field in {"name", "description", "title"}:
            value = self.parse_required_text(raw, issues, field, field.capitalize())
        elif field == "date":
            value = self.parse_date(raw, issues)
            self.check_future_date(value, issues)
        else:
            value = _text(raw)
        is_valid = not any(issue.severity == "error" for issue in issues)
        return ValidationResult(
            is_valid=is_valid,
            issues=issues,
            request=value if is_valid else None,
        )
