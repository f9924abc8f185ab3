from pathlib import Path
from vsite.domain.events import (
    ConversionCompleted, ConversionFailed, DiscoveryFinished, Event, FileRemoved, TaskEvent,
)
from vsite.domain.models import ConversionTask


def make_task():
    return ConversionTask(source_path=Path("a.mkv"), target_path=Path("a.mp4"), profile="cpu")


def test_subscribe_and_publish(event_bus):
    received = []
    event_bus.subscribe(FileRemoved, received.append)

    event = FileRemoved(path=Path("index.html"))
    event_bus.publish(event)

    assert received == [event]


def test_decorator_subscription(event_bus):
    received = []

    @event_bus.subscribe(DiscoveryFinished)
    def on_discovery(event):
        received.append(event.videos_found)

    event_bus.publish(DiscoveryFinished(root=Path("."), videos_found=3, directories=1))

    assert received == [3]
    assert callable(on_discovery)


def test_other_event_types_not_delivered(event_bus):
    received = []
    event_bus.subscribe(FileRemoved, received.append)

    event_bus.publish(DiscoveryFinished(root=Path("."), videos_found=0, directories=0))

    assert received == []


def test_base_class_subscribers_receive_subclass_events(event_bus):
    task_events = []
    all_events = []
    event_bus.subscribe(TaskEvent, task_events.append)
    event_bus.subscribe(Event, all_events.append)

    task = make_task()
    event_bus.publish(ConversionCompleted(task=task))
    event_bus.publish(ConversionFailed(task=task, error_message="boom"))
    event_bus.publish(FileRemoved(path=Path("x")))

    assert [type(e) for e in task_events] == [ConversionCompleted, ConversionFailed]
    assert len(all_events) == 3


def test_multiple_subscribers_in_order(event_bus):
    calls = []
    event_bus.subscribe(FileRemoved, lambda e: calls.append("first"))
    event_bus.subscribe(FileRemoved, lambda e: calls.append("second"))

    event_bus.publish(FileRemoved(path=Path("x")))

    assert calls == ["first", "second"]
