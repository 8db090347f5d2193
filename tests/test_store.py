import tempfile
import unittest
from pathlib import Path


class TestFileStore(unittest.TestCase):
    def test_records_replace_and_delete(self) -> None:
        from mdcat.kernel.store import FileStore

        with tempfile.TemporaryDirectory() as td:
            s = FileStore(Path(td))
            self.assertIsNone(s.read("roots/r_a"))
            s.write("roots/r_a", {"owner_pid": 1, "root": "/a"})
            s.write("roots/r_a", {"owner_pid": 2, "root": "/a"})
            self.assertEqual(s.read("roots/r_a"), {"owner_pid": 2, "root": "/a"})
            self.assertEqual(s.keys("roots"), ["roots/r_a"])

            self.assertFalse(s.compare_and_delete("roots/r_a", field="owner_pid", expected=1))
            self.assertIsNotNone(s.read("roots/r_a"))
            self.assertTrue(s.compare_and_delete("roots/r_a", field="owner_pid", expected=2))
            self.assertIsNone(s.read("roots/r_a"))
            self.assertFalse(s.delete("roots/r_a"))

    def test_corrupt_record_reads_as_missing(self) -> None:
        from mdcat.kernel.store import FileStore

        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "roots" / "r_x.json"
            p.parent.mkdir(parents=True)
            p.write_text("{not json", encoding="utf-8")
            self.assertIsNone(FileStore(Path(td)).read("roots/r_x"))

    def test_log_drain_is_ordered_and_clears(self) -> None:
        from mdcat.kernel.store import FileStore

        with tempfile.TemporaryDirectory() as td:
            s = FileStore(Path(td))
            self.assertEqual(s.drain("queues/7"), [])
            s.append("queues/7", {"path": "a.md"})
            s.append("queues/7", {"path": "b.md"})
            self.assertEqual(s.size("queues/7"), 2)
            self.assertEqual([e["path"] for e in s.drain("queues/7")], ["a.md", "b.md"])
            self.assertEqual(s.drain("queues/7"), [])
            self.assertEqual(s.size("queues/7"), 0)
            # Nothing left behind by the drain.
            self.assertEqual(sorted(p.name for p in (Path(td) / "queues").iterdir()), [])

    def test_append_after_drain_starts_fresh_log(self) -> None:
        from mdcat.kernel.store import FileStore

        with tempfile.TemporaryDirectory() as td:
            s = FileStore(Path(td))
            s.append("queues/7", {"path": "a.md"})
            s.drain("queues/7")
            s.append("queues/7", {"path": "c.md"})
            self.assertEqual([e["path"] for e in s.drain("queues/7")], ["c.md"])

    def test_concurrent_appends_are_never_drained_twice(self) -> None:
        import threading

        from mdcat.kernel.store import FileStore

        writers, per_writer = 4, 200
        with tempfile.TemporaryDirectory() as td:
            s = FileStore(Path(td))
            done = threading.Event()

            def write(w):
                for n in range(per_writer):
                    s.append("queues/7", {"w": w, "n": n})

            threads = [threading.Thread(target=write, args=(w,)) for w in range(writers)]
            for t in threads:
                t.start()

            drained = []

            def watch():
                for t in threads:
                    t.join()
                done.set()

            threading.Thread(target=watch).start()
            while not done.is_set():
                drained.extend(s.drain("queues/7"))
            drained.extend(s.drain("queues/7"))

            seen = [(e["w"], e["n"]) for e in drained]
            self.assertEqual(len(seen), len(set(seen)))
            for w in range(writers):
                ns = [n for (ww, n) in seen if ww == w]
                self.assertEqual(ns, sorted(ns))
            # Losses are tolerated only for appends caught mid-drain.
            self.assertGreater(len(seen), 0)
            self.assertEqual(s.drain("queues/7"), [])

    def test_rejects_path_traversal_keys(self) -> None:
        from mdcat.kernel.store import FileStore

        with tempfile.TemporaryDirectory() as td:
            s = FileStore(Path(td))
            with self.assertRaises(ValueError):
                s.write("../escape", {})
            with self.assertRaises(ValueError):
                s.append("queues/../x", {})


class TestMemoryStore(unittest.TestCase):
    def test_basic_operations(self) -> None:
        from mdcat.kernel.store import MemoryStore

        s = MemoryStore()
        s.write("roots/r_a", {"owner_pid": 5})
        s.write("roots/r_b", {"owner_pid": 6})
        self.assertEqual(s.keys("roots"), ["roots/r_a", "roots/r_b"])
        s.append("queues/5", {"path": "x"})
        self.assertEqual(s.size("queues/5"), 1)
        s.discard("queues/5")
        self.assertEqual(s.drain("queues/5"), [])

    def test_fail_flag_raises_store_error(self) -> None:
        from mdcat.kernel.store import MemoryStore, StoreError

        s = MemoryStore()
        s.fail = True
        with self.assertRaises(StoreError):
            s.read("roots/r_a")
        with self.assertRaises(StoreError):
            s.append("queues/1", {"path": "a"})


if __name__ == "__main__":
    unittest.main()
