"""SessionService: image lifecycle, region bookkeeping, atomic processing."""

from __future__ import annotations

import threading

import numpy as np
import pytest

from conftest import RED, WHITE, make_png
from watermark_remover.exceptions import DecodeError, InvalidRegionError, SessionNotFoundError
from watermark_remover.models.pixel_buffer import PixelBuffer
from watermark_remover.models.region import Region
from watermark_remover.models.strategy import StrategyKind, StrategyParams
from watermark_remover.repositories.image_repository import ImageRepository


def _add_white(service, name="white.png", size=100):
    return service.add_image(make_png(PixelBuffer.blank(size, size, WHITE)), name)


def test_add_image_decodes_and_first_becomes_active(session_service):
    first = _add_white(session_service, "a.png")
    second = _add_white(session_service, "b.png")

    assert session_service.active() is first
    assert [s.id for s in session_service.list_sessions()] == [first.id, second.id]
    assert first.current is not first.original
    assert np.array_equal(first.current.pixels, first.original.pixels)


def test_add_image_rejects_garbage(session_service):
    with pytest.raises(DecodeError):
        session_service.add_image(b"definitely not an image", "bad.png")
    assert session_service.list_sessions() == []


def test_select_remove_and_clear(session_service):
    a = _add_white(session_service)
    b = _add_white(session_service)

    session_service.select(b.id)
    assert session_service.active() is b

    session_service.remove(b.id)
    assert session_service.active() is a
    with pytest.raises(SessionNotFoundError):
        session_service.get(b.id)

    session_service.clear()
    assert session_service.active() is None
    assert session_service.list_sessions() == []


def test_unknown_id_raises(session_service):
    with pytest.raises(SessionNotFoundError):
        session_service.select("nope")
    with pytest.raises(SessionNotFoundError):
        session_service.remove("nope")


def test_region_edits(session_service):
    s = _add_white(session_service)
    session_service.add_region(s.id, Region(10, 10, 20, 20))
    dragged = session_service.add_selection(s.id, 80, 80, 50, 60)
    assert dragged == Region(50, 60, 30, 20)
    assert s.regions == [Region(10, 10, 20, 20), dragged]

    with pytest.raises(InvalidRegionError):
        session_service.add_region(s.id, Region(0, 0, 5, 40))
    assert len(s.regions) == 2

    assert session_service.remove_region(s.id, 0) == Region(10, 10, 20, 20)
    with pytest.raises(IndexError):
        session_service.remove_region(s.id, 5)

    session_service.clear_regions(s.id)
    assert s.regions == []


def test_apply_swaps_in_new_buffer_and_keeps_original(session_service):
    s = _add_white(session_service)
    session_service.add_region(s.id, Region(40, 40, 20, 20))
    old_current = s.current

    report = session_service.apply_removal(s.id, StrategyKind.FILL, StrategyParams(fill_color="#FF0000"))

    assert report.processed == [0]
    assert s.current is report.buffer
    assert s.current is not old_current
    # The pre-call buffer was never written to.
    assert (old_current.pixels == 255).all()
    assert (s.original.pixels == 255).all()
    assert (s.current.pixels[40:60, 40:60] == RED).all()


def test_fill_then_inpaint_end_to_end(session_service):
    s = _add_white(session_service)
    session_service.add_region(s.id, Region(40, 40, 20, 20))
    session_service.apply_removal(s.id, "fill", StrategyParams(fill_color="#FF0000"))
    session_service.apply_removal(s.id, "inpaint")
    assert (s.current.pixels == 255).all()


def test_from_original_ignores_previous_passes(session_service):
    s = _add_white(session_service)
    session_service.add_region(s.id, Region(10, 10, 20, 20))
    session_service.apply_removal(s.id, "fill", StrategyParams(fill_color="#000000"))

    session_service.clear_regions(s.id)
    session_service.add_region(s.id, Region(60, 60, 10, 10))
    session_service.apply_removal(s.id, "fill", StrategyParams(fill_color="#000000"), from_original=True)

    assert (s.current.pixels[10:30, 10:30] == 255).all()
    assert (s.current.pixels[60:70, 60:70, :3] == 0).all()


def test_explicit_regions_override_session_list(session_service):
    s = _add_white(session_service)
    report = session_service.apply_removal(s.id, "fill", regions=[Region(0, 0, 10, 10)],
                                           params=StrategyParams(fill_color="#000"))
    assert report.processed == [0]
    assert s.regions == []


def test_reset_discards_reconstruction(session_service):
    s = _add_white(session_service)
    session_service.add_region(s.id, Region(10, 10, 20, 20))
    session_service.apply_removal(s.id, "fill", StrategyParams(fill_color="#000"))

    session_service.reset(s.id)
    assert (s.current.pixels == 255).all()
    assert s.regions == []


def test_export_round_trips_through_codec(session_service):
    s = _add_white(session_service)
    session_service.add_region(s.id, Region(5, 5, 10, 10))
    session_service.apply_removal(s.id, "fill", StrategyParams(fill_color="#336699"))

    decoded = ImageRepository.decode(session_service.export(s.id, "png"))
    assert np.array_equal(decoded.pixels, s.current.pixels)


def test_replace_background_keeps_subject(session_service):
    pixels = np.zeros((40, 40, 4), dtype=np.uint8)
    pixels[...] = (10, 20, 30, 255)
    s = session_service.add_buffer(PixelBuffer(pixels), "portrait.png")

    out = session_service.replace_background(s.id, "blue")

    assert s.current is out
    assert tuple(out.pixels[0, 0]) == (0x43, 0x8E, 0xDB, 255)
    assert tuple(out.pixels[20, 20]) == (10, 20, 30, 255)
    assert (s.original.pixels == (10, 20, 30, 255)).all()


def test_processing_is_serialised_per_session(session_service):
    s = _add_white(session_service)
    session_service.add_region(s.id, Region(10, 10, 20, 20))

    s.lock.acquire()
    finished = threading.Event()

    def worker():
        session_service.apply_removal(s.id, "fill", StrategyParams(fill_color="#000"))
        finished.set()

    t = threading.Thread(target=worker)
    t.start()
    try:
        # Blocked on the session lock while we hold it.
        assert not finished.wait(0.2)
        assert (s.current.pixels == 255).all()
    finally:
        s.lock.release()
    t.join(5)
    assert finished.is_set()
    assert (s.current.pixels[10:30, 10:30, :3] == 0).all()


def test_add_regions_rejects_whole_batch(session_service):
    s = _add_white(session_service)
    session_service.add_region(s.id, Region(0, 0, 10, 10))

    with pytest.raises(InvalidRegionError):
        session_service.add_regions(s.id, [Region(20, 20, 30, 30), Region(60, 60, 4, 30)])
    assert s.regions == [Region(0, 0, 10, 10)]

    added = session_service.add_regions(s.id, [Region(20, 20, 30, 30), Region(60, 60, 10, 30)])
    assert s.regions == [Region(0, 0, 10, 10), *added]
