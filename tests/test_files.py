import os
import stat

import pytest

from crate_analyzer.errors import IoError
from crate_analyzer.files import read_file_content, save_file_content


def test_save_then_read_roundtrip(tmp_path):
	path = str(tmp_path / "x.rs")
	save_file_content(path, "fn x(){}")
	assert read_file_content(path) == "fn x(){}"


def test_save_preserves_line_endings_and_replaces(tmp_path):
	path = tmp_path / "y.rs"
	path.write_text("old")
	save_file_content(str(path), "a\r\nb\n")
	assert path.read_bytes() == b"a\r\nb\n"
	assert [p.name for p in tmp_path.iterdir()] == ["y.rs"]


def test_read_missing_file_raises_io_error(tmp_path):
	with pytest.raises(IoError):
		read_file_content(str(tmp_path / "nope.rs"))


def test_save_into_missing_directory_raises_io_error(tmp_path):
	with pytest.raises(IoError):
		save_file_content(str(tmp_path / "no" / "dir.rs"), "fn x(){}")


@pytest.mark.skipif(os.name != "posix", reason="permission bits are POSIX only")
def test_new_file_mode_follows_umask(tmp_path):
	previous = os.umask(0o077)
	try:
		path = tmp_path / "private.rs"
		save_file_content(str(path), "fn x(){}")
	finally:
		os.umask(previous)
	assert stat.S_IMODE(path.stat().st_mode) == 0o600


@pytest.mark.skipif(os.name != "posix", reason="permission bits are POSIX only")
def test_existing_file_mode_is_kept(tmp_path):
	path = tmp_path / "script.rs"
	path.write_text("old")
	path.chmod(0o640)
	save_file_content(str(path), "new")
	assert stat.S_IMODE(path.stat().st_mode) == 0o640
