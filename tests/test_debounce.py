"""外部变更防抖测试"""

import asyncio

from conftest import TEST_DEBOUNCE_S, WORK_PATH


class TestDebounce:
    async def test_notifications_coalesce(self, controller):
        """连续三次通知只触发一次重新加载"""
        for _ in range(3):
            controller.on_external_change(WORK_PATH)
        await asyncio.sleep(TEST_DEBOUNCE_S * 5)
        assert controller.reload_count == 2

    async def test_reload_picks_up_new_content(self, controller, document_store, rendered):
        document_store.files[WORK_PATH] = "# Work renamed\n\n- [ ] Only task\n"
        before = len(rendered)
        controller.on_external_change(WORK_PATH)
        await asyncio.sleep(TEST_DEBOUNCE_S * 5)
        assert controller.active_list.title == "Work renamed"
        assert [t.text for t in controller.active_list.tasks] == ["Only task"]
        assert len(rendered) == before + 1

    async def test_no_reload_before_timer_fires(self, controller):
        controller.on_external_change(WORK_PATH)
        await asyncio.sleep(0)
        assert controller.reload_count == 1

    async def test_destroy_cancels_pending_reload(self, controller):
        controller.on_external_change(WORK_PATH)
        controller.destroy()
        await asyncio.sleep(TEST_DEBOUNCE_S * 5)
        assert controller.reload_count == 1

    async def test_notifications_after_destroy_ignored(self, controller):
        controller.destroy()
        controller.on_external_change(WORK_PATH)
        await asyncio.sleep(TEST_DEBOUNCE_S * 5)
        assert controller.reload_count == 1

    async def test_destroy_stops_watch(self, controller, document_store):
        await controller.start_watching()
        controller.destroy()
        await document_store.create_file("30_ToDos/Later.md", "# Later\n")
        await asyncio.sleep(TEST_DEBOUNCE_S * 5)
        assert controller.reload_count == 1
