"""Minimal Qt host for the feed engine.

Renders the visible window as a list, wires tabs/categories/map toggle to the
view-model and turns "scrolled to the bottom" into the viewport sentinel.
"""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QTabBar,
    QVBoxLayout,
    QWidget,
)
from loguru import logger

from app.viewmodels.feed_vm import FeedVM
from app.viewmodels.photo_vm import PhotoVM
from core.models import Category, FeedTab, Photo, ViewMode
from infrastructure.photo_factory import create_photo_from_file

TAB_LABELS: list[tuple[FeedTab, str]] = [
    (FeedTab.CURATED, "Curated"),
    (FeedTab.LATEST, "Latest"),
    (FeedTab.SHUFFLE, "Shuffle"),
    (FeedTab.NEARBY, "Nearby"),
    (FeedTab.FARAWAY, "Faraway"),
]

ID_ROLE: int = Qt.UserRole
NOTICE_TIMEOUT_MS = 8000


class FeedWindow(QMainWindow):
    """Main window; implements the view-model's `FeedListener` callbacks."""

    def __init__(self, vm: FeedVM) -> None:
        super().__init__()
        self._vm = vm
        self._syncing = False
        self._refreshing = False
        self._rows: list[tuple[str, str]] = []
        self._setup_ui()
        self._connect_signals()
        self.setWindowTitle("Lumina")
        self.resize(900, 700)
        vm.set_listener(self)

    def _setup_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)

        bar = QHBoxLayout()
        self.tabs = QTabBar()
        for _, label in TAB_LABELS:
            self.tabs.addTab(label)
        bar.addWidget(self.tabs, 1)

        self.category_box = QComboBox()
        for cat in Category:
            self.category_box.addItem(cat.value.capitalize(), cat)
        bar.addWidget(self.category_box)

        self.map_button = QPushButton("Map")
        self.map_button.setCheckable(True)
        bar.addWidget(self.map_button)

        self.add_button = QPushButton("Add…")
        bar.addWidget(self.add_button)
        layout.addLayout(bar)

        self.busy_bar = QProgressBar()
        self.busy_bar.setRange(0, 0)
        self.busy_bar.setMaximumHeight(4)
        self.busy_bar.setTextVisible(False)
        self.busy_bar.hide()
        layout.addWidget(self.busy_bar)

        self.list = QListWidget()
        layout.addWidget(self.list, 1)

        viewer = QHBoxLayout()
        self.prev_button = QPushButton("‹")
        self.next_button = QPushButton("›")
        self.viewer_label = QLabel("")
        self.viewer_label.setWordWrap(True)
        viewer.addWidget(self.prev_button)
        viewer.addWidget(self.viewer_label, 1)
        viewer.addWidget(self.next_button)
        layout.addLayout(viewer)

        self.setCentralWidget(central)
        self._sync_controls()

    def _connect_signals(self) -> None:
        self.tabs.tabBarClicked.connect(self._on_tab_clicked)
        self.category_box.currentIndexChanged.connect(self._on_category_changed)
        self.map_button.clicked.connect(lambda _checked: self._vm.toggle_view_mode())
        self.add_button.clicked.connect(self._on_add_clicked)
        self.list.itemDoubleClicked.connect(self._on_item_activated)
        self.list.verticalScrollBar().valueChanged.connect(self._on_scrolled)
        self.prev_button.clicked.connect(lambda: self._vm.focus_step(-1))
        self.next_button.clicked.connect(lambda: self._vm.focus_step(1))

    # FeedListener
    def on_busy_changed(self, busy: bool) -> None:
        self.busy_bar.setVisible(busy)

    def on_notice(self, message: str) -> None:
        logger.info("Notice: {}", message)
        self.statusBar().showMessage(message, NOTICE_TIMEOUT_MS)

    def on_view_changed(self) -> None:
        self._sync_controls()
        self._refresh_list()

    def on_scroll_to_top(self) -> None:
        self.list.scrollToTop()

    def on_focus_changed(self, photo: Photo | None) -> None:
        if photo is None:
            self.viewer_label.setText("")
            self.prev_button.setEnabled(False)
            self.next_button.setEnabled(False)
            return
        vm = PhotoVM(photo)
        self.viewer_label.setText(f"{vm.title}\n{photo.exif.camera} {vm.exposure}".strip())
        self.prev_button.setEnabled(self._vm.navigate(photo.id, -1) is not None)
        self.next_button.setEnabled(self._vm.navigate(photo.id, 1) is not None)

    # Qt slots
    def _on_tab_clicked(self, index: int) -> None:
        if index < 0 or self._syncing:
            return
        self._vm.select_tab(TAB_LABELS[index][0])

    def _on_category_changed(self, index: int) -> None:
        if self._syncing:
            return
        category = self.category_box.itemData(index)
        if isinstance(category, Category):
            self._vm.select_category(category)

    def _on_scrolled(self, value: int) -> None:
        if self._refreshing:
            return
        if value >= self.list.verticalScrollBar().maximum():
            self._vm.on_sentinel_visible()

    def _on_item_activated(self, item: QListWidgetItem) -> None:
        self._vm.focus(str(item.data(ID_ROLE)))

    def _on_add_clicked(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Add photo", "", "Images (*.jpg *.jpeg *.png *.webp *.heic *.heif)"
        )
        if not path:
            return
        try:
            photo = create_photo_from_file(path)
        except (OSError, ValueError) as ex:
            logger.error("Add photo failed for {}: {}", path, ex)
            QMessageBox.warning(self, "Add photo", f"Could not read image:\n{ex}")
            return
        self._vm.upsert(photo)

    def keyPressEvent(self, event) -> None:  # noqa: N802 - Qt override
        if event.key() == Qt.Key_Delete and self.list.currentItem() is not None:
            self._confirm_delete(str(self.list.currentItem().data(ID_ROLE)))
            return
        super().keyPressEvent(event)

    def _confirm_delete(self, photo_id: str) -> None:
        answer = QMessageBox.question(
            self,
            "Delete photo",
            "Permanently delete this photo?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if answer != QMessageBox.Yes:
            logger.info("Delete of {} not confirmed", photo_id)
            return
        self._vm.remove(photo_id)

    # helpers
    def _sync_controls(self) -> None:
        self._syncing = True
        try:
            for i, (tab, _) in enumerate(TAB_LABELS):
                if tab is self._vm.tab:
                    self.tabs.setCurrentIndex(i)
            for i in range(self.category_box.count()):
                if self.category_box.itemData(i) == self._vm.category:
                    self.category_box.setCurrentIndex(i)
            self.map_button.setChecked(self._vm.view_mode is ViewMode.MAP)
        finally:
            self._syncing = False

    def _refresh_list(self) -> None:
        origin = self._vm.location if self._vm.tab.needs_location else None
        visible = self._vm.visible
        rows = [(photo.id, PhotoVM(photo).row_text(origin)) for photo in visible]
        shown = len(self._rows)
        self._refreshing = True
        try:
            if shown <= len(rows) and rows[:shown] == self._rows:
                new_rows = rows[shown:]
            else:
                self.list.clear()
                new_rows = rows
            for photo_id, text in new_rows:
                item = QListWidgetItem(text)
                item.setData(ID_ROLE, photo_id)
                self.list.addItem(item)
        finally:
            self._refreshing = False
        self._rows = rows
        total = len(self._vm.view)
        if total == 0:
            self.statusBar().showMessage("No photos in this category yet.")
        else:
            self.statusBar().showMessage(f"Showing {len(visible)} of {total}", 2000)
