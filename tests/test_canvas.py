from app.signing.canvas import (
    PIXEL_RATIO,
    Bounds,
    Captured,
    Clear,
    Drawing,
    Empty,
    MouseInput,
    Point,
    PointerDown,
    PointerMove,
    PointerUp,
    SignatureCanvas,
    TouchInput,
    reduce,
    sample,
)


def make_canvas(**kwargs):
    changes = []
    canvas = SignatureCanvas(changes.append, bounds=Bounds(10, 20, 300, 100), **kwargs)
    return canvas, changes


def stroke(canvas, *points):
    canvas.start_drawing(MouseInput(*points[0]))
    for point in points[1:]:
        canvas.draw(MouseInput(*point))
    canvas.stop_drawing()


class TestReduce:
    def test_press_move_release_captures_stroke(self):
        state = reduce(Empty(), PointerDown(Point(1, 1)))
        state = reduce(state, PointerMove(Point(5, 5)))
        state = reduce(state, PointerUp())

        assert state == Captured(((Point(1, 1), Point(5, 5)),))

    def test_press_without_movement_stays_empty(self):
        state = reduce(reduce(Empty(), PointerDown(Point(1, 1))), PointerUp())
        assert state == Empty()

    def test_new_stroke_keeps_earlier_strokes(self):
        first = (Point(0, 0), Point(1, 1))
        state = reduce(Captured((first,)), PointerDown(Point(9, 9)))

        assert state == Drawing(points=(Point(9, 9),), strokes=(first,))

    def test_move_without_press_is_ignored(self):
        assert reduce(Empty(), PointerMove(Point(3, 3))) == Empty()

    def test_clear_from_any_state(self):
        captured = Captured(((Point(0, 0), Point(1, 1)),))
        assert reduce(captured, Clear()) == Empty()
        assert reduce(Drawing(points=(Point(0, 0),)), Clear()) == Empty()


def test_sample_mouse_and_touch_relative_to_bounds():
    bounds = Bounds(10, 20, 300, 100)

    assert sample(MouseInput(15, 30), bounds) == Point(5, 10)
    assert sample(TouchInput(((110, 70), (0, 0))), bounds) == Point(100, 50)


class TestSignatureCanvas:
    def test_completed_stroke_reports_png(self):
        canvas, changes = make_canvas()

        stroke(canvas, (20, 40), (120, 60), (200, 50))

        assert len(changes) == 1
        assert changes[0].startswith("data:image/png;base64,")
        assert not canvas.is_empty
        assert not canvas.is_drawing

    def test_raster_uses_pixel_ratio(self):
        canvas, _ = make_canvas()
        assert canvas.raster.size == (300 * PIXEL_RATIO, 100 * PIXEL_RATIO)

    def test_clear_reports_none(self):
        canvas, changes = make_canvas()
        stroke(canvas, (20, 40), (120, 60))

        canvas.clear()

        assert changes[-1] is None
        assert canvas.is_empty
        assert canvas.raster.getbbox() is None

    def test_clear_after_many_strokes(self):
        canvas, changes = make_canvas()
        for offset in range(5):
            stroke(canvas, (20, 10 + offset * 15), (200, 15 + offset * 15))

        canvas.clear()

        assert canvas.is_empty
        assert changes[-1] is None
        assert canvas.snapshot() is None

    def test_stroke_without_movement_reports_none(self):
        canvas, changes = make_canvas()
        stroke(canvas, (20, 40))
        assert changes == [None]

    def test_leave_ends_stroke(self):
        canvas, changes = make_canvas()
        canvas.start_drawing(MouseInput(20, 40))
        canvas.draw(MouseInput(80, 40))

        canvas.leave()

        assert not canvas.is_drawing
        assert changes and changes[0] is not None

    def test_disabled_canvas_ignores_input(self):
        canvas, changes = make_canvas(disabled=True)

        stroke(canvas, (20, 40), (120, 60))
        canvas.clear()

        assert changes == []
        assert canvas.is_empty

    def test_disabling_keeps_existing_signature(self):
        canvas, changes = make_canvas()
        stroke(canvas, (20, 40), (120, 60))
        canvas.disabled = True

        canvas.clear()

        assert not canvas.is_empty
        assert len(changes) == 1

    def test_touch_strokes(self):
        canvas, changes = make_canvas()
        canvas.start_drawing(TouchInput(((30, 40),)))
        canvas.draw(TouchInput(((90, 80),)))
        canvas.stop_drawing()

        assert changes[0] is not None

    def test_resize_rerenders_strokes(self):
        canvas, _ = make_canvas()
        stroke(canvas, (20, 40), (120, 60))

        canvas.resize(Bounds(10, 20, 600, 200))

        assert canvas.raster.size == (600 * PIXEL_RATIO, 200 * PIXEL_RATIO)
        assert canvas.raster.getbbox() is not None
