import calendar
import logging
from datetime import date

import matplotlib.pyplot as plt
from matplotlib.backends.backend_qt5agg import \
    FigureCanvasQTAgg as FigureCanvas
from matplotlib.ticker import FuncFormatter
from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QFont
from PyQt5.QtWidgets import (QComboBox, QDialog, QHBoxLayout, QLabel,
                             QMessageBox, QPushButton, QTreeWidget,
                             QTreeWidgetItem, QVBoxLayout, QWidget)

from expenditure_tracker_app.aggregation import (GroupBy, build_monthly_series,
                                                 group_expenditures,
                                                 total_amount, total_pages,
                                                 y_axis_upper_bound)
from expenditure_tracker_app.config import CURRENCY_SYMBOL, PAGE_SIZE
from expenditure_tracker_app.dialogs import AddExpenditureDialog
from expenditure_tracker_app.table_helpers import (assign_category_colors,
                                                   format_currency,
                                                   format_expenditure_row,
                                                   format_group_header)
from expenditure_tracker_app.vocabulary import UNKNOWN_LABEL

logger = logging.getLogger(__name__)

BUTTON_STYLE = """
    QPushButton {
        background-color: #007acc;
        color: white;
        border: none;
        padding: 8px 16px;
        border-radius: 4px;
        font-weight: 500;
        font-family: "Segoe UI";
    }
    QPushButton:hover {
        background-color: #005a9e;
    }
    QPushButton:disabled {
        background-color: #3c3c3c;
        color: #808080;
    }
"""

PICKER_STYLE = """
    QComboBox {
        background: #2d2d2d;
        color: #e0e0e0;
        border: 1px solid #404040;
        border-radius: 4px;
        padding: 6px;
        font-family: "Segoe UI";
        min-width: 80px;
    }
"""


class MonthlyChartWidget(QWidget):
    """Stacked bar chart of spending per category over the trailing 12 months."""

    dashboard_requested = pyqtSignal()

    def __init__(self, data_manager, today_provider=None, parent=None):
        super().__init__(parent)
        self.data_manager = data_manager
        self.today_provider = today_provider or date.today
        self.series = []
        self.y_bound = 0

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        self.fig, self.ax = plt.subplots(figsize=(8, 4))
        self.fig.patch.set_facecolor("#2d2d2d")
        self.ax.set_facecolor("#252526")
        self.canvas = FigureCanvas(self.fig)
        self.canvas.mpl_connect("button_press_event", self.on_chart_click)
        layout.addWidget(self.canvas)

        self.update_chart()

    def on_chart_click(self, event):
        self.dashboard_requested.emit()

    def update_chart(self):
        records = self.data_manager.list_expenditures()
        categories = list(self.data_manager.categories)
        self.series = build_monthly_series(records, self.today_provider(), categories)
        self.y_bound = y_axis_upper_bound(self.series)
        self.draw_series(categories)

    def draw_series(self, categories):
        colors = assign_category_colors(categories + [UNKNOWN_LABEL])
        self.ax.clear()

        labelled = set()
        for x, bucket in enumerate(self.series):
            bottom = 0.0
            for category, amount in bucket.sorted_categories:
                if amount <= 0:
                    continue
                self.ax.bar(
                    x,
                    amount,
                    bottom=bottom,
                    color=colors.get(category, "#7f7f7f"),
                    label=category if category not in labelled else None,
                    width=0.6,
                )
                labelled.add(category)
                bottom += amount

        self.ax.set_xticks(range(len(self.series)))
        self.ax.set_xticklabels([f"{b.month:%b}" for b in self.series])
        # An all-zero series still needs a drawable axis
        self.ax.set_ylim(0, self.y_bound or 1000)
        self.ax.yaxis.set_major_formatter(
            FuncFormatter(lambda value, _: f"{CURRENCY_SYMBOL}{int(value)}")
        )
        self.ax.tick_params(axis="x", colors="#e0e0e0", labelsize=9)
        self.ax.tick_params(axis="y", colors="#e0e0e0", labelsize=9)
        self.ax.spines["top"].set_visible(False)
        self.ax.spines["right"].set_visible(False)
        self.ax.grid(True, axis="y", alpha=0.2, color="#404040", linestyle="--")
        self.ax.set_title(
            "Monthly Expenditure", color="#e0e0e0", fontweight="bold", fontsize=13
        )

        if labelled:
            self.ax.legend(
                loc="upper center",
                bbox_to_anchor=(0.5, -0.1),
                ncol=4,
                fontsize=8,
                frameon=False,
                labelcolor="#e0e0e0",
            )
        self.fig.tight_layout()
        self.canvas.draw()
        logger.debug("Chart redrawn with y bound %s", self.y_bound)


class DashboardWidget(QWidget):
    """Month view of expenditures grouped by day or category."""

    data_changed = pyqtSignal()

    def __init__(self, data_manager, selected_date=None, parent=None):
        super().__init__(parent)
        self.data_manager = data_manager
        selected_date = selected_date or date.today()
        self.selected_month = selected_date.month
        self.selected_year = selected_date.year
        self.group_by = GroupBy.DAY
        self.current_page = 1
        self.page_count = 1
        self.records = []
        self.buckets = []

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(12)

        filter_layout = QHBoxLayout()
        self.month_picker = QComboBox()
        self.month_picker.addItems([calendar.month_abbr[m] for m in range(1, 13)])
        self.month_picker.setCurrentIndex(self.selected_month - 1)
        self.year_picker = QComboBox()
        for year in range(self.selected_year - 5, self.selected_year + 6):
            self.year_picker.addItem(str(year), year)
        self.year_picker.setCurrentIndex(5)
        self.group_by_picker = QComboBox()
        for mode in GroupBy:
            self.group_by_picker.addItem(mode.value, mode)
        for picker in (self.month_picker, self.year_picker, self.group_by_picker):
            picker.setStyleSheet(PICKER_STYLE)

        filter_layout.addWidget(self.month_picker)
        filter_layout.addWidget(self.year_picker)
        filter_layout.addStretch()
        filter_layout.addWidget(QLabel("Group:"))
        filter_layout.addWidget(self.group_by_picker)
        layout.addLayout(filter_layout)

        self.total_label = QLabel()
        self.total_label.setStyleSheet("color: #a0a0a0; font-size: 11px;")
        layout.addWidget(self.total_label)

        self.tree = QTreeWidget()
        self.tree.setColumnCount(4)
        self.tree.setHeaderLabels(["Day", "Category", "Comment", "Amount"])
        self.tree.setRootIsDecorated(False)
        layout.addWidget(self.tree)

        page_layout = QHBoxLayout()
        self.prev_btn = QPushButton("◀ Prev")
        self.next_btn = QPushButton("Next ▶")
        self.page_label = QLabel()
        self.edit_btn = QPushButton("✏️ Edit")
        self.delete_btn = QPushButton("🗑️ Delete")
        for btn in (self.prev_btn, self.next_btn, self.edit_btn, self.delete_btn):
            btn.setStyleSheet(BUTTON_STYLE)
        page_layout.addWidget(self.prev_btn)
        page_layout.addWidget(self.page_label)
        page_layout.addWidget(self.next_btn)
        page_layout.addStretch()
        page_layout.addWidget(self.edit_btn)
        page_layout.addWidget(self.delete_btn)
        layout.addLayout(page_layout)

        self.month_picker.currentIndexChanged.connect(self.on_filter_changed)
        self.year_picker.currentIndexChanged.connect(self.on_filter_changed)
        self.group_by_picker.currentIndexChanged.connect(self.on_group_by_changed)
        self.prev_btn.clicked.connect(self.previous_page)
        self.next_btn.clicked.connect(self.next_page)
        self.edit_btn.clicked.connect(self.edit_selected)
        self.delete_btn.clicked.connect(lambda: self.delete_selected())
        self.tree.itemSelectionChanged.connect(self.update_action_state)

        self.update_dashboard()

    # ---------- Filters and paging ----------

    def on_filter_changed(self, _index=None):
        self.selected_month = self.month_picker.currentIndex() + 1
        self.selected_year = self.year_picker.currentData()
        self.current_page = 1
        self.update_dashboard()

    def on_group_by_changed(self, _index=None):
        self.group_by = self.group_by_picker.currentData()
        self.update_dashboard()

    def previous_page(self):
        if self.current_page > 1:
            self.current_page -= 1
            self.update_dashboard()

    def next_page(self):
        if self.current_page < self.page_count:
            self.current_page += 1
            self.update_dashboard()

    # ---------- Rendering ----------

    def update_dashboard(self):
        self.records = self.data_manager.list_for_month(self.selected_year, self.selected_month)
        self.page_count = max(total_pages(len(self.records), PAGE_SIZE), 1)
        self.current_page = min(self.current_page, self.page_count)
        self.buckets = group_expenditures(
            self.records,
            self.group_by,
            page=self.current_page,
            page_size=PAGE_SIZE,
            vocabulary=self.data_manager.categories,
        )

        self.total_label.setText(f"Total spent: {format_currency(total_amount(self.records))}")
        self.render_tree()
        self.update_page_controls()
        self.update_action_state()

    def render_tree(self):
        self.tree.clear()
        header_font = QFont()
        header_font.setBold(True)

        for bucket in self.buckets:
            title, total_text = format_group_header(bucket)
            header = QTreeWidgetItem([title, "", "", total_text])
            header.setFont(0, header_font)
            header.setFlags(header.flags() & ~Qt.ItemIsSelectable)
            for record in bucket.items:
                row = format_expenditure_row(record)
                child = QTreeWidgetItem(
                    [row["day"], row["category"], row["comment"], row["amount"]]
                )
                child.setData(0, Qt.UserRole, record.get("id"))
                header.addChild(child)
            self.tree.addTopLevelItem(header)
        self.tree.expandAll()

    def update_page_controls(self):
        paginated = self.group_by is GroupBy.DAY
        if paginated:
            self.page_label.setText(f"Page {self.current_page} of {self.page_count}")
        else:
            self.page_label.setText("All records")
        self.prev_btn.setEnabled(paginated and self.current_page > 1)
        self.next_btn.setEnabled(paginated and self.current_page < self.page_count)

    def selected_expenditure_id(self):
        item = self.tree.currentItem()
        if item is None or item.parent() is None:
            return None
        return item.data(0, Qt.UserRole)

    def update_action_state(self):
        # Edit and delete are only offered in the day view
        allowed = self.group_by is GroupBy.DAY and self.selected_expenditure_id() is not None
        self.edit_btn.setEnabled(allowed)
        self.delete_btn.setEnabled(allowed)

    # ---------- Mutations ----------

    def edit_selected(self):
        expenditure_id = self.selected_expenditure_id()
        if expenditure_id is None:
            return
        record = self.data_manager.get_expenditure(expenditure_id)
        if record is None:
            return
        dialog = AddExpenditureDialog(self.data_manager.categories, self, expenditure=record)
        if dialog.exec_() == QDialog.Accepted:
            data = dialog.get_data()
            if data:
                self.apply_update(expenditure_id, data)

    def apply_update(self, expenditure_id, data):
        try:
            updated = self.data_manager.update_expenditure(expenditure_id, data)
        except ValueError as e:
            QMessageBox.warning(self, "Invalid Input", str(e))
            return False
        self._after_mutation()
        return updated

    def delete_selected(self, confirm=True):
        expenditure_id = self.selected_expenditure_id()
        if expenditure_id is None:
            return False
        if confirm:
            reply = QMessageBox.question(
                self,
                "Delete Expenditure",
                "Delete the selected expenditure?",
                QMessageBox.Yes | QMessageBox.No,
                QMessageBox.No,
            )
            if reply != QMessageBox.Yes:
                return False
        deleted = self.data_manager.delete_expenditure(expenditure_id)
        self._after_mutation()
        return deleted

    def _after_mutation(self):
        if not self.data_manager.last_save_ok:
            QMessageBox.warning(self, "Save Failed", "Changes could not be saved to disk.")
        self.update_dashboard()
        self.data_changed.emit()
