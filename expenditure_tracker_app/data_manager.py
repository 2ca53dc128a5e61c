import calendar
import copy
import json
import logging
import os
import shutil
from datetime import date, datetime

from expenditure_tracker_app.aggregation import to_date
from expenditure_tracker_app.config import DATA_FILE, DATE_FORMAT
from expenditure_tracker_app.table_helpers import parse_amount, truncate_comment
from expenditure_tracker_app.vocabulary import (Category, PaymentMode, SpentBy,
                                                category_vocabulary)

logger = logging.getLogger(__name__)

FILE_VERSION = 1


class DataManager:
    """JSON-file record store for expenditures: create, read, update, delete by id."""

    def __init__(self, filename=DATA_FILE, file_path=None):
        # Allow file_path parameter for tests
        if file_path:
            self.filename = file_path
        else:
            self.filename = filename
        self.expenditures = []
        self.categories = category_vocabulary()
        self.payment_modes = PaymentMode.labels()
        self.spenders = SpentBy.labels()
        self.last_save_ok = True
        self.load_data()

    def load_data(self, file_path=None):
        """Load expenditures from file. Accepts optional file_path for testing."""
        filename_to_load = file_path if file_path else self.filename

        if not filename_to_load or not os.path.exists(filename_to_load):
            logger.info(
                "No existing expenditure file found, starting fresh: %s", filename_to_load
            )
            return

        try:
            with open(filename_to_load, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            self.expenditures = []
            logger.warning(
                "Failed to parse expenditures from %s, starting fresh", filename_to_load
            )
            self._backup_unreadable(filename_to_load)
            return
        except OSError as e:
            logger.error("Failed to load expenditures: %s", e)
            self.expenditures = []
            return

        # Older files hold a bare list of records
        records = data.get("expenditures") if isinstance(data, dict) else data
        if not isinstance(records, list):
            logger.warning(
                "No expenditure list in %s, starting fresh", filename_to_load
            )
            self.expenditures = []
            self._backup_unreadable(filename_to_load)
            return

        valid = [r for r in records if isinstance(r, dict)]
        if len(valid) < len(records):
            logger.warning(
                "Skipped %d malformed entries in %s", len(records) - len(valid), filename_to_load
            )
            self._backup_unreadable(filename_to_load)

        # Ensure all records have IDs
        next_id = max((r["id"] for r in valid if isinstance(r.get("id"), int)), default=0) + 1
        for record in valid:
            if not isinstance(record.get("id"), int):
                record["id"] = next_id
                next_id += 1

        self.expenditures = valid
        logger.info(
            "Loaded %d expenditures from %s", len(self.expenditures), filename_to_load
        )

    @staticmethod
    def _backup_unreadable(filename):
        """Keep a .bak copy before the next save replaces the file."""
        backup = filename + ".bak"
        try:
            shutil.copyfile(filename, backup)
            logger.warning("Original expenditure file kept as %s", backup)
        except OSError as e:
            logger.error("Failed to back up %s: %s", filename, e)

    def save_data(self, file_path=None):
        """Save data to file. Returns False when the write fails."""
        filename_to_save = file_path if file_path else self.filename

        if not filename_to_save:
            logger.debug("No filename specified for save, skipping")
            return True

        data = {"version": FILE_VERSION, "expenditures": self.expenditures}
        try:
            directory = os.path.dirname(filename_to_save)
            if directory and not os.path.exists(directory):
                os.makedirs(directory, exist_ok=True)

            with open(filename_to_save, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=4, ensure_ascii=False)
            logger.info("Saved %d expenditures to %s", len(self.expenditures), filename_to_save)
            return True
        except (OSError, TypeError) as e:
            logger.error("Failed to save data: %s", e)
            return False

    # ---------- Validation ----------

    @staticmethod
    def normalize_date(value):
        """Return an ISO date string from a date, datetime or YYYY-MM-DD string."""
        if isinstance(value, datetime):
            return value.date().strftime(DATE_FORMAT)
        if isinstance(value, date):
            return value.strftime(DATE_FORMAT)
        try:
            return datetime.strptime(str(value).strip(), DATE_FORMAT).strftime(DATE_FORMAT)
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format")

    def _validated_fields(self, fields):
        clean = {}
        if "amount" in fields:
            clean["amount"] = parse_amount(fields["amount"])
        if "category" in fields:
            clean["category"] = Category.from_label(fields["category"]).value
        if "payment_mode" in fields:
            clean["payment_mode"] = PaymentMode.from_label(fields["payment_mode"]).value
        if "spent_by" in fields:
            clean["spent_by"] = SpentBy.from_label(fields["spent_by"]).value
        if "date" in fields:
            clean["date"] = self.normalize_date(fields["date"])
        if "comment" in fields:
            clean["comment"] = truncate_comment(fields["comment"])
        return clean

    # ---------- CRUD ----------

    def add_expenditure(self, amount, category, payment_mode, spent_by, date, comment=None):
        """Add an expenditure and return a copy of the stored record."""
        fields = self._validated_fields(
            {
                "amount": amount,
                "category": category,
                "payment_mode": payment_mode,
                "spent_by": spent_by,
                "date": date,
                "comment": comment,
            }
        )
        new_id = max((r.get("id", 0) for r in self.expenditures), default=0) + 1
        record = {"id": new_id, **fields}
        self.expenditures.append(record)
        self.last_save_ok = self.save_data()
        logger.info("Added expenditure %s: %s", new_id, record)
        return dict(record)

    def _find(self, expenditure_id):
        for record in self.expenditures:
            if record.get("id") == expenditure_id:
                return record
        return None

    def get_expenditure(self, expenditure_id):
        record = self._find(expenditure_id)
        return dict(record) if record is not None else None

    def update_expenditure(self, expenditure_id, changes):
        """
        Update fields of an existing expenditure. Keys outside the record
        schema are ignored. Returns False if the id is unknown.
        """
        record = self._find(expenditure_id)
        if record is None:
            logger.debug("Update failed, no expenditure with id %s", expenditure_id)
            return False

        fields = self._validated_fields(changes)
        record.update(fields)
        self.last_save_ok = self.save_data()
        logger.info("Updated expenditure %s with %s", expenditure_id, fields)
        return True

    def delete_expenditure(self, expenditure_id):
        record = self._find(expenditure_id)
        if record is None:
            logger.debug("Delete failed, no expenditure with id %s", expenditure_id)
            return False

        self.expenditures.remove(record)
        self.last_save_ok = self.save_data()
        logger.warning("Deleted expenditure %s: %s", expenditure_id, record)
        return True

    # ---------- Queries ----------

    def list_expenditures(self, start_date=None, end_date=None):
        """
        Return copies of expenditures within the inclusive date range,
        most recent first. Records with a missing or unreadable date are
        placed on today, as the chart places them.
        """
        start = to_date(self.normalize_date(start_date)) if start_date is not None else None
        end = to_date(self.normalize_date(end_date)) if end_date is not None else None
        today = date.today()

        results = []
        for record in self.expenditures:
            record_date = to_date(record.get("date"), today)
            if start and record_date < start:
                continue
            if end and record_date > end:
                continue
            results.append((record_date, copy.deepcopy(record)))

        results.sort(key=lambda item: (item[0], item[1].get("id", 0)), reverse=True)
        logger.debug(
            "Listed %d expenditures between %s and %s", len(results), start, end
        )
        return [record for _, record in results]

    def list_for_month(self, year, month):
        """Return the expenditures of one calendar month, most recent first."""
        if not 1 <= month <= 12:
            raise ValueError("Month must be between 1 and 12")
        last_day = calendar.monthrange(year, month)[1]
        return self.list_expenditures(date(year, month, 1), date(year, month, last_day))

    def has_expenditures(self):
        return bool(self.expenditures)
