"""命令热重载测试"""

import unittest

from hotcmd.core.command import (
    InMemoryDefinitionSource,
    ReloadManager,
    is_marked_for_deletion,
    load_command,
)
from hotcmd.core.errors import ReloadError, ValidationFailure
from tests.utils.async_test_case import AsyncTestCase
from tests.utils.definitions import echo_exec, help_text, make_definition, make_validator

LOCATOR = "commands/ping.py"


def new_exec(message, args):
    return "new"


class FakeLister:
    """返回固定资源列表的枚举器"""

    def __init__(self, resources):
        self.resources = resources
        self.requested = []

    def list_resources(self, command):
        self.requested.append(command.name)
        return list(self.resources)


class TestReloadManager(AsyncTestCase):
    """测试 ReloadManager"""

    def setUp(self):
        self.validator = make_validator()
        self.source = InMemoryDefinitionSource(
            {LOCATOR: make_definition("ping", cooldown=5, desc="Old.")}
        )
        self.command = self.run_async(load_command(self.source, LOCATOR, self.validator))

    @AsyncTestCase.async_test
    async def test_load_command(self):
        """测试首次加载"""
        self.assertEqual(self.command.source_location, LOCATOR)
        self.assertEqual(self.command.cooldown_seconds, 5)
        self.assertEqual(self.source.fetch_counts[LOCATOR], 1)

    @AsyncTestCase.async_test
    async def test_reload_replaces_fields(self):
        """测试重载替换字段，子命令树和运行时状态保持不变"""
        child = self.command.register_subcommand(
            "all", {"desc": "a", "full_desc": "a", "help": help_text}, echo_exec
        )
        self.command.register_subcommand_alias("everyone", "all")
        subcommands = self.command.subcommands
        aliases = self.command.subcommand_aliases
        pre_check = lambda m, a, main: None
        self.command.set_hooks(pre_check=pre_check)
        self.command.enabled = False
        self.command.task = "session"

        self.source.put(
            LOCATOR,
            make_definition("ping", exec_handler=new_exec, cooldown=10, desc="New.", permission=3),
        )
        report = await ReloadManager(self.source).reload(self.command)

        self.assertEqual(self.command.cooldown_seconds, 10)
        self.assertEqual(self.command.description, "New.")
        self.assertEqual(self.command.permission_level, 3)
        self.assertIs(self.command.exec_handler, new_exec)

        self.assertIs(self.command.subcommands, subcommands)
        self.assertIs(self.command.subcommand_aliases, aliases)
        self.assertIs(self.command.subcommands["all"], child)
        self.assertEqual(self.command.subcommand_aliases, {"everyone": "all"})
        self.assertIs(self.command.hooks.pre_check, pre_check)
        self.assertFalse(self.command.enabled)
        self.assertEqual(self.command.task, "session")
        self.assertEqual(self.command.source_location, LOCATOR)

        self.assertEqual(report.command_name, "ping")
        self.assertEqual(report.previous_name, "ping")
        self.assertIn(LOCATOR, self.source.invalidations)
        self.assertEqual(self.source.fetch_counts[LOCATOR], 2)

    @AsyncTestCase.async_test
    async def test_reload_can_rename(self):
        """测试重载后的定义可以修改命令名"""
        self.source.put(LOCATOR, make_definition("pong"))
        report = await ReloadManager(self.source).reload(self.command)

        self.assertEqual(self.command.name, "pong")
        self.assertEqual(report.previous_name, "ping")
        self.assertEqual(report.command_name, "pong")

    @AsyncTestCase.async_test
    async def test_reload_associated_resources(self):
        """测试关联资源的刷新与删除标记"""
        self.source.put("lib/keep.py", {"value": 1})
        self.source.put("lib/drop.py", {"DELETE": True})
        self.source.put(
            LOCATOR,
            make_definition(
                "ping", associated_resources=["lib/keep.py", "lib/missing.py", "lib/drop.py"]
            ),
        )
        report = await ReloadManager(self.source).reload(self.command)

        self.assertEqual(report.reloaded_resources, ["lib/keep.py"])
        self.assertEqual(report.evicted_resources, ["lib/drop.py"])
        self.assertTrue(self.source.is_cached("lib/keep.py"))
        self.assertFalse(self.source.is_cached("lib/drop.py"))
        self.assertNotIn("lib/missing.py", self.source.fetch_counts)

    @AsyncTestCase.async_test
    async def test_reload_structured_resources(self):
        """测试资源目录中结构化资源的刷新"""
        self.source.put("resources/ping/a.py", {"value": "a"})
        self.source.put("resources/ping/b.py", {"DELETE": True})
        lister = FakeLister(["resources/ping/a.py", "resources/ping/b.py"])

        report = await ReloadManager(self.source, resource_lister=lister).reload(self.command)

        self.assertEqual(lister.requested, ["ping"])
        self.assertEqual(report.reloaded_resources, ["resources/ping/a.py"])
        self.assertEqual(report.evicted_resources, ["resources/ping/b.py"])

    @AsyncTestCase.async_test
    async def test_separate_resource_source(self):
        """测试关联资源使用独立的来源"""
        resources = InMemoryDefinitionSource({"lib/keep.py": {"value": 1}})
        self.source.put(LOCATOR, make_definition("ping", associated_resources=["lib/keep.py"]))

        manager = ReloadManager(self.source, resource_source=resources)
        report = await manager.reload(self.command)

        self.assertEqual(report.reloaded_resources, ["lib/keep.py"])
        self.assertEqual(resources.fetch_counts["lib/keep.py"], 1)
        self.assertNotIn("lib/keep.py", self.source.fetch_counts)

    def test_reload_invalid_definition(self):
        """测试重载时定义校验失败，命令保持原样"""
        self.source.put(LOCATOR, make_definition("ping", cooldown=999))
        self.assertRaisesAsync(ValidationFailure, ReloadManager(self.source).reload(self.command))
        self.assertEqual(self.command.cooldown_seconds, 5)

    def test_reload_not_transactional(self):
        """测试资源刷新失败时已替换的字段不会回滚"""

        class BrokenLister:
            def list_resources(self, command):
                raise OSError("disk gone")

        self.source.put(LOCATOR, make_definition("ping", cooldown=7))
        manager = ReloadManager(self.source, resource_lister=BrokenLister())

        self.assertRaisesAsync(OSError, manager.reload(self.command))
        self.assertEqual(self.command.cooldown_seconds, 7)

    def test_reload_without_source_location(self):
        """测试没有来源位置的子命令无法重载"""
        child = self.command.register_subcommand(
            "all", {"desc": "a", "full_desc": "a", "help": help_text}, echo_exec
        )
        error = self.assertRaisesAsync(ReloadError, ReloadManager(self.source).reload(child))
        self.assertEqual(error.command_name, "all")
        self.assertEqual(str(error), "[all] 命令没有来源位置，无法重载")
        self.assertFalse(hasattr(error, "locator"))

    @AsyncTestCase.async_test
    async def test_async_source(self):
        """测试返回 awaitable 的来源"""

        class AsyncSource:
            def __init__(self, definition):
                self.definition = definition

            async def fetch(self, locator):
                return self.definition

            async def invalidate(self, locator):
                return None

            async def exists(self, locator):
                return True

        source = AsyncSource(make_definition("ping", cooldown=9))
        command = await load_command(source, LOCATOR, self.validator)
        self.assertEqual(command.cooldown_seconds, 9)

        source.definition = make_definition("ping", cooldown=11)
        await ReloadManager(source).reload(command)
        self.assertEqual(command.cooldown_seconds, 11)


class TestDeletionMarker(unittest.TestCase):
    """测试删除标记判断"""

    def test_marker(self):
        class Module:
            DELETE = True

        self.assertTrue(is_marked_for_deletion({"DELETE": True}))
        self.assertTrue(is_marked_for_deletion(Module()))
        self.assertFalse(is_marked_for_deletion({"DELETE": "yes"}))
        self.assertFalse(is_marked_for_deletion({}))
        self.assertFalse(is_marked_for_deletion(object()))


if __name__ == "__main__":
    unittest.main()
