import unittest


ROOTS = {"/repo/a.md": "/repo", "/repo2/b.md": "/repo2"}


def _session(store=None, *, pid=100, alive=()):
    from mdcat.kernel.inbox import InboundQueue
    from mdcat.kernel.registry import OwnershipRegistry
    from mdcat.kernel.session import Session
    from mdcat.kernel.store import MemoryStore

    store = store or MemoryStore()
    alive_set = set(alive) | {pid}
    registry = OwnershipRegistry(store, pid=pid, is_alive=lambda p: p in alive_set)
    queue = InboundQueue(store, sender_pid=pid)
    return Session(registry, queue, pid=pid, resolver=ROOTS.get), registry, queue, store


class TestSession(unittest.TestCase):
    def test_startup_registers_root_and_sets_pending(self) -> None:
        from mdcat.kernel.registry import OwnershipRegistry

        s, _, _, store = _session()
        self.assertEqual(s.on_startup("/repo/a.md"), "/repo")
        self.assertEqual(s.current_root, "/repo")
        other = OwnershipRegistry(store, pid=200, is_alive=lambda p: p == 100)
        self.assertEqual(other.find_owner("/repo"), 100)
        self.assertEqual(s.take_pending_open(), "/repo/a.md")
        self.assertIsNone(s.take_pending_open())

    def test_startup_with_free_standing_document_registers_nothing(self) -> None:
        s, _, _, store = _session()
        self.assertIsNone(s.on_startup("/tmp/loose.md"))
        self.assertIsNone(s.current_root)
        self.assertEqual(store.keys("roots"), [])
        self.assertEqual(s.take_pending_open(), "/tmp/loose.md")

    def test_set_current_root_transfers_ownership(self) -> None:
        s, registry, _, _ = _session()
        s.set_current_root("/repo")
        s.set_current_root("/repo2")
        self.assertIsNone(registry.record_for("/repo"))
        self.assertEqual(registry.record_for("/repo2").owner_pid, 100)

    def test_set_current_root_leaves_foreign_record(self) -> None:
        s, registry, _, _ = _session(alive={300})
        s.set_current_root("/repo")
        registry.register("/repo", 300)
        s.set_current_root("/repo2")
        self.assertEqual(registry.find_owner("/repo"), 300)

    def test_pending_then_queue_then_backlog(self) -> None:
        s, _, queue, _ = _session()
        queue.enqueue(100, "/q/1.md")
        queue.enqueue(100, "/q/2.md")
        queue.enqueue(100, "/q/3.md")
        s.deliver("/local.md")
        self.assertEqual(s.take_pending_open(), "/local.md")
        self.assertEqual(s.take_pending_open(), "/q/1.md")
        queue.enqueue(100, "/q/4.md")
        self.assertEqual(s.take_pending_open(), "/q/2.md")
        self.assertEqual(s.take_pending_open(), "/q/3.md")
        self.assertEqual(s.take_pending_open(), "/q/4.md")
        self.assertIsNone(s.take_pending_open())

    def test_deliver_goes_to_attached_listener(self) -> None:
        s, _, _, _ = _session()
        got = []
        s.attach_listener(got.append)
        self.assertTrue(s.deliver("/repo/a.md"))
        self.assertEqual(got, ["/repo/a.md"])
        self.assertIsNone(s.take_pending_open())
        s.detach_listener()
        self.assertFalse(s.deliver("/repo/a.md"))
        self.assertEqual(s.take_pending_open(), "/repo/a.md")

    def test_shutdown_unregisters_and_discards_queue(self) -> None:
        s, registry, queue, store = _session()
        s.on_startup("/repo/a.md")
        queue.enqueue(100, "/repo/later.md")
        s.shutdown()
        self.assertIsNone(registry.record_for("/repo"))
        self.assertEqual(store.size("queues/100"), 0)
        self.assertIsNone(s.current_root)


if __name__ == "__main__":
    unittest.main()
