# main.py
from __future__ import annotations

from pathlib import Path

from kivy.app import App
from kivy.uix.label import Label

from services.economy import Economy
from services.logger import setup_logger
from services.persistence import FileKeyValueStore, Persistence
from services.scheduler import ProductionScheduler
from services.state import GameState


class BakeryApp(App):
    title = "Idle Bakery"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.state: GameState | None = None
        self.persistence: Persistence | None = None
        self.scheduler: ProductionScheduler | None = None
        self.balance: Label | None = None

    # ---------- Persistence helpers ----------
    def _save_path(self) -> Path:
        Path(self.user_data_dir).mkdir(parents=True, exist_ok=True)
        return Path(self.user_data_dir) / Economy.SAVE_FILENAME

    def _save(self, *_):
        if self.persistence and self.state:
            self.persistence.save(self.state)

    # ---------- App lifecycle ----------
    def build(self):
        setup_logger()
        self.persistence = Persistence(FileKeyValueStore(str(self._save_path())))
        self.state = GameState(persistence=self.persistence)
        self.scheduler = ProductionScheduler(self.state)

        self.balance = Label(text=self._balance_text(), font_size="28sp")
        self.state.add_observer(self._update_balance)
        self.scheduler.start()
        return self.balance

    def on_pause(self):
        self._save()
        return True

    def on_stop(self):
        if self.scheduler:
            self.scheduler.stop()
        self._save()

    # ---------- UI updates ----------
    def _balance_text(self) -> str:
        if not self.state:
            return "0"
        return f"{self.state.money.to_display_string()} coins"

    def _update_balance(self) -> None:
        if self.balance:
            self.balance.text = self._balance_text()


if __name__ == "__main__":
    BakeryApp().run()
