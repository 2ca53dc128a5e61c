import logging

from PyQt5.QtCore import QDate
from PyQt5.QtGui import QColor, QFont, QTextCharFormat
from PyQt5.QtWidgets import (QComboBox, QDateEdit, QDialog, QDialogButtonBox,
                             QFormLayout, QLabel, QLineEdit, QSizePolicy,
                             QVBoxLayout)

from expenditure_tracker_app.config import CURRENCY_SYMBOL
from expenditure_tracker_app.table_helpers import parse_amount
from expenditure_tracker_app.vocabulary import (Category, PaymentMode, SpentBy,
                                                category_vocabulary)

logger = logging.getLogger(__name__)

INPUT_STYLE = """
    QLineEdit, QComboBox, QDateEdit {
        background-color: #2d2d2d;
        color: #e0e0e0;
        border: 1px solid #404040;
        border-radius: 4px;
        padding: 8px;
        font-family: "Segoe UI";
        font-size: 12px;
    }
    QLineEdit:focus {
        border: 1px solid #007acc;
    }
"""


class AddExpenditureDialog(QDialog):
    """Form for adding a new expenditure or editing an existing one."""

    def __init__(self, categories=None, parent=None, expenditure=None):
        super().__init__(parent)
        self.expenditure = expenditure
        self.setWindowTitle("Edit Expenditure" if expenditure else "Add Expenditure")
        self.resize(420, 360)
        self.setStyleSheet(INPUT_STYLE)

        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.amount_input = QLineEdit()
        self.amount_input.setPlaceholderText(f"Amount spent : {CURRENCY_SYMBOL}")

        self.category_dropdown = self._make_dropdown(
            categories if categories is not None else category_vocabulary(), Category
        )
        self.comment_input = QLineEdit()
        self.comment_input.setPlaceholderText("Comment (optional)")
        self.payment_dropdown = self._make_dropdown(PaymentMode.labels(), PaymentMode)
        self.spent_by_dropdown = self._make_dropdown(SpentBy.labels(), SpentBy)

        self.date_edit = QDateEdit()
        self.date_edit.setCalendarPopup(True)
        self.date_edit.setDisplayFormat("yyyy-MM-dd")
        self.date_edit.setDate(QDate.currentDate())
        calendar = self.date_edit.calendarWidget()
        if calendar:
            calendar.setDateTextFormat(QDate.currentDate(), self.get_highlighted_date_format())

        form.addRow(QLabel("Amount:"), self.amount_input)
        form.addRow(QLabel("Category:"), self.category_dropdown)
        form.addRow(QLabel("Comment:"), self.comment_input)
        form.addRow(QLabel("Payment Mode:"), self.payment_dropdown)
        form.addRow(QLabel("Spent By:"), self.spent_by_dropdown)
        form.addRow(QLabel("Date:"), self.date_edit)
        layout.addLayout(form)

        self.button_box = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        self.save_button = self.button_box.button(QDialogButtonBox.Save)
        self.button_box.accepted.connect(self.accept)
        self.button_box.rejected.connect(self.reject)
        layout.addWidget(self.button_box)

        if expenditure:
            self.load_expenditure(expenditure)

        self.amount_input.textChanged.connect(self.update_save_state)
        self.update_save_state()

    @staticmethod
    def _make_dropdown(labels, vocabulary):
        dropdown = QComboBox()
        dropdown.setMinimumHeight(35)
        dropdown.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        for label in labels:
            member = vocabulary.from_label(label)
            text = member.display_name if member is not vocabulary.UNKNOWN else label
            dropdown.addItem(text, label)
        return dropdown

    @staticmethod
    def _select(dropdown, label):
        # Unrecognized stored labels fall back to the first entry
        index = dropdown.findData(label)
        dropdown.setCurrentIndex(index if index >= 0 else 0)

    def get_highlighted_date_format(self):
        """Return formatting for highlighted current date"""
        format = QTextCharFormat()
        format.setBackground(QColor("#007acc"))
        format.setForeground(QColor("#ffffff"))
        format.setFontWeight(QFont.Bold)
        return format

    def load_expenditure(self, expenditure):
        """Pre-fill the form from a stored record."""
        self.amount_input.setText(f"{float(expenditure.get('amount', 0.0) or 0.0):.2f}")
        self._select(self.category_dropdown, Category.from_label(expenditure.get("category")).value)
        self._select(self.payment_dropdown, PaymentMode.from_label(expenditure.get("payment_mode")).value)
        self._select(self.spent_by_dropdown, SpentBy.from_label(expenditure.get("spent_by")).value)
        stored_date = QDate.fromString(str(expenditure.get("date", "")), "yyyy-MM-dd")
        if stored_date.isValid():
            self.date_edit.setDate(stored_date)
        self.comment_input.setText(expenditure.get("comment") or "")

    def is_amount_valid(self):
        text = self.amount_input.text().strip()
        if not text:
            return False
        try:
            parse_amount(text)
        except ValueError:
            return False
        return True

    def update_save_state(self):
        # Save stays disabled until the amount parses
        self.save_button.setEnabled(self.is_amount_valid())

    def get_data(self):
        """Return the form values, or None when the amount is invalid."""
        if not self.is_amount_valid():
            logger.debug("Rejected expenditure form with amount %r", self.amount_input.text())
            return None
        return {
            "amount": parse_amount(self.amount_input.text()),
            "category": self.category_dropdown.currentData(),
            "payment_mode": self.payment_dropdown.currentData(),
            "spent_by": self.spent_by_dropdown.currentData(),
            "date": self.date_edit.date().toString("yyyy-MM-dd"),
            "comment": self.comment_input.text().strip(),
        }
