import shutil
import unittest
from pathlib import Path
from uuid import uuid4

from sms_chat_relay.memory import SessionStore


PROJECT_ROOT = Path(__file__).resolve().parents[2]


class SessionStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp_dir = PROJECT_ROOT / ".test-artifacts" / f"{self.__class__.__name__.lower()}-{uuid4().hex}"
        self._tmp_dir.mkdir(parents=True, exist_ok=True)
        self._store = SessionStore(str(self._tmp_dir / "sessions.db"))

    def tearDown(self) -> None:
        self._store.close()
        shutil.rmtree(self._tmp_dir, ignore_errors=True)
