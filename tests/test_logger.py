"""test_logger.py: Unit tests for FormLogger."""

import re

from formflow.logger import FormLogger


LINE_PATTERN = re.compile(r"^FormFlow\|\d{6}_\d{6}\|(.*)$")


def test_log_file_name_and_line_format(tmp_path, capsys) -> None:
    with FormLogger(log_dir=tmp_path / "log", slug="unit", version="1.2") as logger:
        logger.log("hello")
        path = logger.log_path

    assert re.fullmatch(r"FF_unit_v12_\d{6}_\d{6}_log\.txt", path.name)
    (line,) = path.read_text(encoding="utf-8").splitlines()
    assert LINE_PATTERN.match(line).group(1) == "hello"
    assert "hello" in capsys.readouterr().out


def test_warn_counts_and_prefixes(tmp_path) -> None:
    with FormLogger(log_dir=tmp_path, slug="unit", version="1", silent=True) as logger:
        logger.warn("bad optionsJson")
        logger.warn("bad side-channel")
        path = logger.log_path

    assert logger.warning_count == 2
    messages = [LINE_PATTERN.match(line).group(1) for line in path.read_text(encoding="utf-8").splitlines()]
    assert messages == ["WARNING: bad optionsJson", "WARNING: bad side-channel"]


def test_silent_logger_keeps_console_clean(tmp_path, capsys) -> None:
    logger = FormLogger(log_dir=tmp_path, slug="unit", version="1", silent=True)
    logger.log("quiet")
    logger.close()

    assert capsys.readouterr().out == ""
    assert logger.log_file.closed
    assert logger.elapsed_seconds >= 0
