import logging
import sys

from PyQt5.QtWidgets import (QAction, QApplication, QDialog, QFileDialog,
                             QMainWindow, QMessageBox, QPushButton,
                             QTabWidget, QVBoxLayout, QWidget)

from expenditure_tracker_app.config import LOG_FILE, LOG_LEVEL
from expenditure_tracker_app.data_manager import DataManager
from expenditure_tracker_app.dialogs import AddExpenditureDialog
from expenditure_tracker_app.reports import ReportService
from expenditure_tracker_app.widgets import (BUTTON_STYLE, DashboardWidget,
                                             MonthlyChartWidget)

logger = logging.getLogger(__name__)

APP_STYLESHEET = """
    QMainWindow, QDialog {
        background-color: #1e1e1e;
        color: #e0e0e0;
    }
    QTabWidget::pane {
        border: 1px solid #404040;
        background-color: #2d2d2d;
        border-radius: 4px;
        margin: 4px;
    }
    QTabBar::tab {
        background-color: #3c3c3c;
        color: #e0e0e0;
        padding: 10px 16px;
        margin: 2px;
        border-radius: 4px;
        font-family: "Segoe UI";
        font-size: 12px;
        min-width: 80px;
    }
    QTabBar::tab:selected {
        background-color: #007acc;
        color: #ffffff;
        font-weight: 600;
    }
    QTreeWidget {
        background-color: #252526;
        color: #e0e0e0;
        border: 1px solid #404040;
    }
    QLabel {
        color: #e0e0e0;
    }
"""


def configure_logging(level=LOG_LEVEL, log_file=LOG_FILE):
    """Configure root logging for the application. Call once at startup."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    # Quiet down noisy libraries
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logger.debug("Logging configured at %s -> %s", level, log_file)


class MainWindow(QMainWindow):
    def __init__(self, data_manager=None):
        super().__init__()
        self.data_manager = data_manager if data_manager is not None else DataManager()
        self.report_service = ReportService(self.data_manager)
        self.setWindowTitle("Expenditure Tracker")
        self.setGeometry(100, 100, 1000, 700)

        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        # Overview: chart and the add button
        self.overview_tab = QWidget()
        overview_layout = QVBoxLayout(self.overview_tab)
        self.chart = MonthlyChartWidget(self.data_manager)
        overview_layout.addWidget(self.chart)
        self.add_button = QPushButton("Add Expenditure")
        self.add_button.setMinimumHeight(44)
        self.add_button.setStyleSheet(BUTTON_STYLE)
        self.add_button.clicked.connect(self.add_expenditure)
        overview_layout.addWidget(self.add_button)
        self.tabs.addTab(self.overview_tab, "Overview")

        self.dashboard = DashboardWidget(self.data_manager)
        self.tabs.addTab(self.dashboard, "Dashboard")

        self.create_menus()

        self.chart.dashboard_requested.connect(self.show_dashboard)
        self.dashboard.data_changed.connect(self.refresh_all_components)
        self.tabs.currentChanged.connect(self.refresh_on_switch)

    def create_menus(self):
        file_menu = self.menuBar().addMenu("File")

        export_table_action = QAction("Export Month (CSV/Excel)...", self)
        export_table_action.triggered.connect(lambda: self.export_month(pdf=False))
        file_menu.addAction(export_table_action)

        export_pdf_action = QAction("Export Month (PDF)...", self)
        export_pdf_action.triggered.connect(lambda: self.export_month(pdf=True))
        file_menu.addAction(export_pdf_action)

        file_menu.addSeparator()
        exit_action = QAction("Exit", self)
        exit_action.triggered.connect(self.exit_application)
        file_menu.addAction(exit_action)

    def show_dashboard(self):
        self.tabs.setCurrentWidget(self.dashboard)

    def refresh_on_switch(self, index):
        """Recompute the view being switched to."""
        if self.tabs.widget(index) is self.dashboard:
            self.dashboard.update_dashboard()
        else:
            self.chart.update_chart()

    def refresh_all_components(self):
        """Recompute every view after a mutation."""
        self.chart.update_chart()
        self.dashboard.update_dashboard()
        logger.debug("All components refreshed")

    def add_expenditure(self):
        dialog = AddExpenditureDialog(self.data_manager.categories, self)
        if dialog.exec_() == QDialog.Accepted:
            data = dialog.get_data()
            if data:
                self.save_expenditure(data)

    def save_expenditure(self, data):
        """Store a new expenditure from form data and refresh the views."""
        try:
            self.data_manager.add_expenditure(**data)
        except ValueError as e:
            logger.warning("Rejected expenditure %s: %s", data, e)
            QMessageBox.warning(self, "Invalid Input", str(e))
            return False

        if not self.data_manager.last_save_ok:
            QMessageBox.warning(self, "Save Failed", "The expenditure could not be saved to disk.")
        self.refresh_all_components()
        return True

    def export_month(self, filepath=None, pdf=False):
        """Export the month selected on the dashboard. The extension picks the format."""
        year = self.dashboard.selected_year
        month = self.dashboard.selected_month
        interactive = filepath is None

        if interactive:
            if pdf:
                filepath, _ = QFileDialog.getSaveFileName(
                    self, "Save PDF File", f"expenditures-{year}-{month:02d}.pdf", "PDF Files (*.pdf)"
                )
            else:
                filepath, selected_filter = QFileDialog.getSaveFileName(
                    self,
                    "Save File",
                    f"expenditures-{year}-{month:02d}.xlsx",
                    "Excel Files (*.xlsx);;CSV Files (*.csv)",
                )
                if filepath and not filepath.lower().endswith((".xlsx", ".csv")):
                    filepath += ".csv" if selected_filter.startswith("CSV") else ".xlsx"
            if not filepath:
                return None

        try:
            result = self.report_service.export_month(
                year, month, filepath, mode=self.dashboard.group_by
            )
        except ValueError as e:
            logger.warning("Export rejected: %s", e)
            QMessageBox.warning(self, "Export Error", str(e))
            return None

        if result is None:
            QMessageBox.warning(self, "Export Failed", f"Could not export to {filepath}")
        elif interactive:
            QMessageBox.information(self, "Export", f"Exported to {result}")
        return result

    def exit_application(self):
        reply = QMessageBox.question(
            self,
            "Confirm Exit",
            "Are you sure you want to exit?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if reply == QMessageBox.Yes:
            QApplication.quit()


def main():
    configure_logging()
    app = QApplication(sys.argv)
    app.setStyleSheet(APP_STYLESHEET)
    window = MainWindow()
    window.show()
    logger.info("Expenditure tracker started")
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
