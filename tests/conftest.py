# conftest.py
import os
import sys
import tempfile

import pytest

# Widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import matplotlib

matplotlib.use("Agg")

from PyQt5.QtWidgets import QApplication

from expenditure_tracker_app.data_manager import DataManager

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def pytest_configure(config):
    """Register custom markers to avoid warnings."""
    config.addinivalue_line(
        "markers", "gui: marks tests as GUI tests (require display)"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (no GUI required)"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


@pytest.fixture(scope="session")
def qapp():
    """QApplication fixture for PyQt tests"""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app


def _temp_path(suffix):
    temp_file = tempfile.NamedTemporaryFile(mode="w", suffix=suffix, delete=False)
    temp_file.close()
    return temp_file.name


@pytest.fixture
def temp_json_file():
    """Path of an empty temporary JSON file, removed afterwards"""
    path = _temp_path(".json")
    os.unlink(path)
    yield path
    for leftover in (path, path + ".bak"):
        if os.path.exists(leftover):
            os.unlink(leftover)


@pytest.fixture
def temp_csv_file():
    path = _temp_path(".csv")
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def temp_excel_file():
    path = _temp_path(".xlsx")
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def temp_pdf_file():
    path = _temp_path(".pdf")
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def data_manager(temp_json_file):
    """DataManager backed by a temporary file."""
    return DataManager(file_path=temp_json_file)


@pytest.fixture
def sample_records():
    """March 2024 expenditures, most recent first as the store returns them."""
    return [
        {"id": 4, "amount": 300.0, "category": "Restaurant", "payment_mode": "UPI",
         "spent_by": "Partner", "date": "2024-03-20", "comment": "Dinner"},
        {"id": 2, "amount": 1500.0, "category": "Travel", "payment_mode": "Credit Card",
         "spent_by": "Self", "date": "2024-03-20", "comment": "Train tickets"},
        {"id": 3, "amount": 200.0, "category": "Groceries", "payment_mode": "Cash",
         "spent_by": "Self", "date": "2024-03-12", "comment": None},
        {"id": 1, "amount": 500.0, "category": "Groceries", "payment_mode": "UPI",
         "spent_by": "Self", "date": "2024-03-05", "comment": "Weekly groce..."},
    ]


@pytest.fixture
def populated_manager(data_manager):
    """DataManager holding one expenditure per day from 2024-03-01 to 2024-03-12."""
    for day in range(1, 13):
        data_manager.add_expenditure(
            amount=100 * day,
            category="Groceries" if day % 2 else "Travel",
            payment_mode="Cash",
            spent_by="Self",
            date=f"2024-03-{day:02d}",
            comment=f"Day {day}",
        )
    return data_manager
