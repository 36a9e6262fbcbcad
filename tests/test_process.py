"""Tests for message processing, dead-letter routing and the receive loop."""

import tempfile
import threading
from pathlib import Path
from unittest import TestCase
from unittest.mock import MagicMock

from file_bus.exceptions import TransportTimeout, UndecodableMessageError
from file_bus.handlers import error_drain, inbound
from file_bus.message import Message
from file_bus.process import QueueProcessor, keep_running, process_message, send_to_error_queue


class TestKeepRunning(TestCase):
    def test_unbounded_without_stop_event(self):
        self.assertTrue(keep_running(None, 1000, None))

    def test_stops_at_max_cycles(self):
        self.assertTrue(keep_running(None, 1, 2))
        self.assertFalse(keep_running(None, 2, 2))

    def test_stops_when_event_set(self):
        event = threading.Event()
        self.assertTrue(keep_running(event, 0, None))
        event.set()
        self.assertFalse(keep_running(event, 0, None))


class TestSendToErrorQueue(TestCase):
    def test_adds_error_property(self):
        repo = MagicMock()
        repo.send.return_value = "9"
        message = Message(body=b"x", properties={"fileName": "a.csv"}, id="1")

        self.assertEqual(send_to_error_queue(repo, "errors", message, "bad"), "9")

        repo.send.assert_called_once_with(
            "errors",
            Message(body=b"x", properties={"fileName": "a.csv", "Error": "bad"}, id="1"),
        )
        self.assertNotIn("Error", message.properties)

    def test_send_failure_is_swallowed(self):
        repo = MagicMock()
        repo.send.side_effect = ConnectionError("down")
        with self.assertLogs("file_bus.process", level="ERROR") as logs:
            self.assertIsNone(send_to_error_queue(repo, "errors", Message(body=b"x"), "bad"))
        self.assertIn("Failed to send to Error queue: down", logs.output[0])
        repo.send.assert_called_once()


class TestProcessMessage(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.received = Path(self.tmp.name)
        self.handler = inbound.Handler(self.received)
        self.repo = MagicMock()

    def tearDown(self):
        self.tmp.cleanup()

    def routed(self) -> Message:
        self.repo.send.assert_called_once()
        queue_name, message = self.repo.send.call_args.args
        self.assertEqual(queue_name, "errors")
        return message

    def test_valid_message_is_written(self):
        message = Message(body=b"hello", properties={"fileName": "a.txt"}, id="1")
        self.assertIsNone(process_message(message, self.handler, self.repo, "errors"))
        self.assertEqual((self.received / "a.txt").read_bytes(), b"hello")
        self.repo.send.assert_not_called()

    def test_each_validation_failure_is_routed_with_its_reason(self):
        cases = [
            ({}, "No filename found"),
            ({"fileName": ""}, "Filename is empty"),
            ({"fileName": "data.csv"}, "Filename must be a text file!"),
        ]
        for properties, reason in cases:
            with self.subTest(reason=reason):
                self.repo.reset_mock()
                message = Message(body=b"payload", properties=properties, id="1")

                self.assertEqual(process_message(message, self.handler, self.repo, "errors"), reason)

                routed = self.routed()
                self.assertEqual(routed.body, b"payload")
                self.assertEqual(routed.properties, {**properties, "Error": reason})
                self.assertEqual(message.properties, properties)
                self.assertEqual(list(self.received.iterdir()), [])

    def test_self_produced_message_is_rejected(self):
        message = Message(body=b"0123456789", properties={"FileName": "report.txt"}, id="1")
        self.assertEqual(process_message(message, self.handler, self.repo, "errors"), "No filename found")
        self.assertEqual(self.routed().properties, {"FileName": "report.txt", "Error": "No filename found"})

    def test_write_failure_is_routed(self):
        message = Message(body=b"x", properties={"fileName": "no-such-dir/a.txt"}, id="1")
        reason = process_message(message, self.handler, self.repo, "errors")
        self.assertIn("No such file or directory", reason)
        self.assertEqual(self.routed().properties["Error"], reason)

    def test_routed_message_is_the_original(self):
        handler = MagicMock()
        handler.validate.return_value = None

        def mutate(message):
            message.properties["fileName"] = "mutated"
            raise RuntimeError("handler failed")

        handler.handle.side_effect = mutate
        message = Message(body=b"x", properties={"fileName": "a.txt"}, id="1")

        process_message(message, handler, self.repo, "errors")

        self.assertEqual(self.routed().properties, {"fileName": "a.txt", "Error": "handler failed"})

    def test_failure_without_error_queue_is_only_logged(self):
        handler = error_drain.Handler(self.received / "missing")
        with self.assertLogs("file_bus.process", level="ERROR"):
            reason = process_message(Message(body=b"x", id="1"), handler, self.repo)
        self.assertIsNotNone(reason)
        self.repo.send.assert_not_called()


class TestQueueProcessor(TestCase):
    def setUp(self):
        self.repo = MagicMock()
        self.handler = MagicMock()
        self.handler.validate.return_value = None
        self.processor = QueueProcessor(self.repo, "files", self.handler, error_queue_name="errors")

    def test_no_message_is_logged_only(self):
        self.repo.receive.return_value = None
        with self.assertLogs("file_bus.process", level="INFO") as logs:
            self.assertFalse(self.processor.poll_once())
        self.assertIn("No message found", logs.output[0])
        self.repo.receive.assert_called_once_with("files", 10)
        self.repo.send.assert_not_called()
        self.handler.handle.assert_not_called()

    def test_timeout_is_treated_as_no_message(self):
        self.repo.receive.side_effect = TransportTimeout("timed out")
        with self.assertLogs("file_bus.process", level="INFO") as logs:
            self.assertFalse(self.processor.poll_once())
        self.assertIn("No message found", logs.output[0])
        self.repo.send.assert_not_called()

    def test_undecodable_message_is_routed_to_error_queue(self):
        raw = Message(body=b'{"data": {}, "meta": {}}', id="5")
        self.repo.receive.side_effect = UndecodableMessageError(raw, "1 validation error for MessageDTO")

        with self.assertLogs("file_bus.process", level="ERROR"):
            self.assertFalse(self.processor.poll_once())

        self.repo.send.assert_called_once_with(
            "errors",
            Message(
                body=b'{"data": {}, "meta": {}}',
                properties={"Error": "1 validation error for MessageDTO"},
                id="5",
            ),
        )
        self.handler.handle.assert_not_called()

    def test_undecodable_message_without_error_queue_is_logged(self):
        processor = QueueProcessor(self.repo, "files_error", self.handler)
        self.repo.receive.side_effect = UndecodableMessageError(Message(body=b"{}", id="5"), "bad payload")
        with self.assertLogs("file_bus.process", level="ERROR") as logs:
            self.assertFalse(processor.poll_once())
        self.assertIn("bad payload", logs.output[0])
        self.repo.send.assert_not_called()

    def test_receive_failure_is_logged(self):
        self.repo.receive.side_effect = ConnectionError("broker down")
        with self.assertLogs("file_bus.process", level="ERROR") as logs:
            self.assertFalse(self.processor.poll_once())
        self.assertIn("broker down", logs.output[0])

    def test_message_is_handled(self):
        message = Message(body=b"x", properties={"fileName": "a.txt"}, id="1")
        self.repo.receive.return_value = message
        self.assertTrue(self.processor.poll_once())
        self.handler.handle.assert_called_once_with(message)

    def test_run_is_bounded_by_max_cycles(self):
        self.repo.receive.side_effect = [None, ConnectionError("x"), Message(body=b"x", id="1")]
        self.processor.run(max_cycles=3)
        self.assertEqual(self.repo.receive.call_count, 3)
        self.handler.handle.assert_called_once()

    def test_run_stops_on_event(self):
        stop_event = threading.Event()

        def receive(queue_name, timeout):
            stop_event.set()
            return None

        self.repo.receive.side_effect = receive
        self.processor.run(stop_event=stop_event)
        self.repo.receive.assert_called_once()
