# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import logging.handlers

from gluejobs.api import init_basic_logging


class TestLoggingConfig:
    def test_file_logging(self, tmp_path):
        log_dir = tmp_path / "logs"
        root = logging.getLogger()
        handlers_before = list(root.handlers)
        level_before = root.level
        try:
            logger = init_basic_logging(str(log_dir), enable_console_logging=False)
            assert logger is root
            added = [h for h in root.handlers if h not in handlers_before]
            assert len(added) == 1
            assert isinstance(added[0], logging.handlers.RotatingFileHandler)

            logging.getLogger("gluejobs.test").info("hello")
            added[0].flush()
            assert "hello" in (log_dir / "gluejobs.log").read_text()
        finally:
            for handler in list(root.handlers):
                if handler not in handlers_before:
                    root.removeHandler(handler)
                    handler.close()
            root.setLevel(level_before)
