"""Tests for questcal.config — settings validation."""

import pytest
from pydantic import ValidationError
from unittest.mock import patch

from questcal.config import Settings, _load_settings


class TestSettings:
    def test_defaults(self):
        s = Settings(API_BASE_URL="http://quest.test")
        assert s.PIXELS_PER_HOUR == 60.0
        assert s.SNAP_MINUTES == 5
        assert s.CALENDAR_BACKEND == "http"

    def test_trailing_slash_stripped(self):
        assert Settings(API_BASE_URL="http://quest.test/").API_BASE_URL == "http://quest.test"

    def test_backend_normalized(self):
        s = Settings(API_BASE_URL="http://quest.test", CALENDAR_BACKEND=" Memory ")
        assert s.CALENDAR_BACKEND == "memory"

    def test_numeric_strings_coerced(self):
        s = Settings(API_BASE_URL="http://quest.test", PIXELS_PER_HOUR="48", SNAP_MINUTES="15")
        assert s.PIXELS_PER_HOUR == 48.0
        assert s.SNAP_MINUTES == 15

    def test_zero_snap_rejected(self):
        with pytest.raises(ValidationError):
            Settings(API_BASE_URL="http://quest.test", SNAP_MINUTES=0)


class TestLoadSettings:
    @patch.dict("os.environ", {"API_BASE_URL": ""})
    def test_missing_base_url_exits(self):
        with pytest.raises(SystemExit):
            _load_settings()

    @patch.dict("os.environ", {"API_BASE_URL": "http://other.test", "SNAP_MINUTES": "10"})
    def test_reads_environment(self):
        s = _load_settings()
        assert s.API_BASE_URL == "http://other.test"
        assert s.SNAP_MINUTES == 10
