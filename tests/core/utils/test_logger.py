"""日志配置测试"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from loguru import logger as root_logger

from hotcmd.core.utils import logger as logger_module
from hotcmd.core.utils.logger import init_logger, logger


class TestInitLogger(unittest.TestCase):
    """测试 hotcmd 文件 sink 的配置"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.host_records = []
        self.host_sink = root_logger.add(self.host_records.append, format="{message}")

    def tearDown(self):
        root_logger.remove(self.host_sink)
        with patch.dict(os.environ, {"HOTCMD_LOG_DISABLED": "1"}):
            init_logger(force=True)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def enable(self, **kwargs):
        with patch.dict(os.environ, {"HOTCMD_LOG_DISABLED": "0"}):
            return init_logger(
                log_dir=self.temp_dir, log_file="test.log", level="DEBUG", force=True, **kwargs
            )

    def test_writes_only_hotcmd_records(self):
        """测试文件 sink 只写入 hotcmd 绑定的日志"""
        sink_id = self.enable()
        self.assertIsNotNone(sink_id)

        logger.info("from hotcmd")
        root_logger.info("from host")

        content = (self.temp_dir / "test.log").read_text(encoding="utf-8")
        self.assertIn("from hotcmd", content)
        self.assertNotIn("from host", content)

    def test_host_handlers_survive_reconfiguration(self):
        """测试重新配置不会移除宿主程序的 handler"""
        first = self.enable()
        second = self.enable()
        self.assertNotEqual(first, second)

        root_logger.info("still here")
        logger.info("hotcmd message")
        messages = [str(record).strip() for record in self.host_records]
        self.assertIn("still here", messages)
        self.assertIn("hotcmd message", messages)

    def test_reconfigure_replaces_own_sink(self):
        """测试重新配置时移除旧的文件 sink"""
        first = self.enable()
        self.enable()
        with self.assertRaises(ValueError):
            root_logger.remove(first)

    def test_disabled(self):
        """测试 HOTCMD_LOG_DISABLED 关闭文件 sink"""
        self.enable()
        with patch.dict(os.environ, {"HOTCMD_LOG_DISABLED": "1"}):
            sink_id = init_logger(log_dir=self.temp_dir / "off", force=True)

        self.assertIsNone(sink_id)
        self.assertIsNone(logger_module._SINK_ID)
        self.assertFalse((self.temp_dir / "off").exists())

    def test_configured_once_without_force(self):
        """测试未指定 force 时不会重复配置"""
        sink_id = self.enable()
        self.assertEqual(init_logger(log_dir=self.temp_dir / "other"), sink_id)
        self.assertFalse((self.temp_dir / "other").exists())


if __name__ == "__main__":
    unittest.main()
