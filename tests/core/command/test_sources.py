"""定义来源测试"""

import importlib.machinery
import os
import shutil
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path

from hotcmd.core.command import (
    DefinitionSource,
    DirectoryResourceLister,
    InMemoryDefinitionSource,
    ModuleDefinitionSource,
    ReloadManager,
    ResourceLister,
    load_command,
)
from tests.utils.async_test_case import AsyncTestCase
from tests.utils.definitions import make_command, make_validator

PING_SOURCE = """
name = "ping"


def help():
    return "Replies with pong."


def execute(message, args):
    return "pong"


meta = {{
    "desc": "Replies with pong.",
    "full_desc": "Replies with pong to check latency.",
    "cooldown": {cooldown},
    "help": help,
}}
"""


class TestModuleDefinitionSource(AsyncTestCase):
    """测试从 Python 文件加载定义"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.source = ModuleDefinitionSource(self.temp_dir)
        self.validator = make_validator()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write(self, relative: str, content: str) -> Path:
        path = self.temp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    def test_protocol(self):
        """测试实现了来源协议"""
        self.assertIsInstance(self.source, DefinitionSource)
        self.assertIsInstance(InMemoryDefinitionSource(), DefinitionSource)
        self.assertIsInstance(DirectoryResourceLister(self.temp_dir), ResourceLister)

    def test_fetch_and_cache(self):
        """测试加载模块并缓存"""
        self.write("ping.py", PING_SOURCE.format(cooldown=5))

        self.assertTrue(self.source.exists("ping.py"))
        module = self.source.fetch("ping.py")
        self.assertEqual(module.name, "ping")
        self.assertEqual(module.meta["cooldown"], 5)
        self.assertTrue(self.source.is_cached("ping.py"))
        self.assertIs(self.source.fetch("ping.py"), module)

    def test_fetch_missing(self):
        """测试加载不存在的文件"""
        self.assertFalse(self.source.exists("missing.py"))
        with self.assertRaises(FileNotFoundError):
            self.source.fetch("missing.py")

    def test_invalidate_reads_new_content(self):
        """测试失效后重新读取文件内容"""
        self.write("ping.py", PING_SOURCE.format(cooldown=5))
        first = self.source.fetch("ping.py")

        self.write("ping.py", PING_SOURCE.format(cooldown=8))
        self.assertIs(self.source.fetch("ping.py"), first)

        self.source.invalidate("ping.py")
        self.assertFalse(self.source.is_cached("ping.py"))
        second = self.source.fetch("ping.py")
        self.assertIsNot(second, first)
        self.assertEqual(second.meta["cooldown"], 8)

    def test_loaded_through_file_loader(self):
        """测试模块通过文件加载器导入"""
        path = self.write("ping.py", PING_SOURCE.format(cooldown=5))
        module = self.source.fetch("ping.py")

        self.assertIsInstance(module.__loader__, importlib.machinery.SourceFileLoader)
        self.assertEqual(module.__spec__.origin, str(path.resolve()))
        self.assertEqual(module.__file__, str(path.resolve()))
        self.assertIs(sys.modules[module.__name__], module)

        self.source.invalidate("ping.py")
        self.assertNotIn(module.__name__, sys.modules)

    def test_invalidate_removes_bytecode(self):
        """测试失效时删除字节码缓存"""
        path = self.write("ping.py", PING_SOURCE.format(cooldown=5))
        self.source.fetch("ping.py")

        bytecode = ModuleDefinitionSource.bytecode_path(path.resolve())
        if bytecode is None:
            self.skipTest("解释器不支持字节码缓存")
        bytecode.parent.mkdir(parents=True, exist_ok=True)
        bytecode.write_bytes(b"stale")

        self.source.invalidate("ping.py")
        self.assertFalse(bytecode.exists())

    def test_same_size_rewrite_with_same_mtime(self):
        """测试等长且 mtime 相同的修改在失效后也能读到新内容"""
        path = self.write("ping.py", PING_SOURCE.format(cooldown=5))
        stat = path.stat()
        self.assertEqual(self.source.fetch("ping.py").meta["cooldown"], 5)

        self.write("ping.py", PING_SOURCE.format(cooldown=8))
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns))
        self.assertEqual(path.stat().st_size, stat.st_size)

        self.source.invalidate("ping.py")
        self.assertEqual(self.source.fetch("ping.py").meta["cooldown"], 8)

    def test_syntax_error_not_cached(self):
        """测试语法错误的文件不会进入缓存"""
        self.write("broken.py", "def broken(:\n")
        with self.assertRaises(SyntaxError):
            self.source.fetch("broken.py")
        self.assertFalse(self.source.is_cached("broken.py"))

    @AsyncTestCase.async_test
    async def test_load_and_reload_from_file(self):
        """测试从文件加载命令并在修改后重载"""
        path = self.write("ping.py", PING_SOURCE.format(cooldown=5))
        command = await load_command(self.source, str(path), self.validator)

        self.assertEqual(command.cooldown_seconds, 5)
        self.assertEqual(command.source_location, str(path))
        self.assertEqual(await command.run({"message": "!ping"}), "pong")

        self.write("ping.py", PING_SOURCE.format(cooldown=12))
        await ReloadManager(self.source).reload(command)
        self.assertEqual(command.cooldown_seconds, 12)

    @AsyncTestCase.async_test
    async def test_reload_resources_from_directory(self):
        """测试按资源目录刷新结构化资源"""
        path = self.write("ping.py", PING_SOURCE.format(cooldown=5))
        self.write("resources/ping/a.py", "VALUE = 1\n")
        self.write("resources/ping/z.py", "DELETE = True\n")
        self.write("resources/ping/notes.txt", "ignored\n")

        command = await load_command(self.source, str(path), self.validator)
        lister = DirectoryResourceLister(self.temp_dir / "resources")
        report = await ReloadManager(self.source, resource_lister=lister).reload(command)

        self.assertEqual(
            [Path(p).name for p in report.reloaded_resources], ["a.py"]
        )
        self.assertEqual(
            [Path(p).name for p in report.evicted_resources], ["z.py"]
        )
        self.assertFalse(self.source.is_cached(report.evicted_resources[0]))


class TestDirectoryResourceLister(unittest.TestCase):
    """测试资源目录枚举"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_list_resources(self):
        """测试按命令名枚举资源"""
        directory = self.temp_dir / "ping"
        (directory / "nested.py").mkdir(parents=True)
        (directory / "b.py").write_text("", encoding="utf-8")
        (directory / "a.py").write_text("", encoding="utf-8")
        (directory / "c.yaml").write_text("", encoding="utf-8")

        lister = DirectoryResourceLister(self.temp_dir)
        resources = lister.list_resources(make_command("ping"))
        self.assertEqual([Path(p).name for p in resources], ["a.py", "b.py"])

    def test_custom_suffix(self):
        """测试自定义资源后缀"""
        directory = self.temp_dir / "ping"
        directory.mkdir()
        (directory / "a.yaml").write_text("", encoding="utf-8")

        lister = DirectoryResourceLister(self.temp_dir, suffix=".yaml")
        self.assertEqual(len(lister.list_resources(make_command("ping"))), 1)

    def test_missing_directory(self):
        """测试资源目录不存在"""
        lister = DirectoryResourceLister(self.temp_dir)
        self.assertEqual(lister.list_resources(make_command("ping")), [])


class TestInMemoryDefinitionSource(unittest.TestCase):
    """测试内存来源"""

    def test_fetch_counts_and_invalidation(self):
        source = InMemoryDefinitionSource({"a": 1})
        self.assertEqual(source.fetch("a"), 1)
        self.assertEqual(source.fetch("a"), 1)
        self.assertEqual(source.fetch_counts["a"], 1)

        source.put("a", 2)
        self.assertEqual(source.fetch("a"), 1)
        source.invalidate("a")
        self.assertEqual(source.fetch("a"), 2)
        self.assertEqual(source.invalidations, ["a"])

    def test_missing(self):
        source = InMemoryDefinitionSource()
        with self.assertRaises(KeyError):
            source.fetch("missing")
        source.put("a", 1)
        source.remove("a")
        self.assertFalse(source.exists("a"))


if __name__ == "__main__":
    unittest.main()
