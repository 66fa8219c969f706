from __future__ import annotations

from typing import TYPE_CHECKING

from vtkmodules.vtkInteractionStyle import vtkInteractorStyleTrackballCamera

if TYPE_CHECKING:
    from millerview.viewers.camera.orbit_controls import OrbitControls

WHEEL_DOLLY_FACTOR = 1.1


class OrbitInteractorStyle(vtkInteractorStyleTrackballCamera):
    """
    Routes left-drag and wheel input into OrbitControls.

    Rotation and zoom are not applied here; the render loop applies them
    through OrbitControls.update() so they get damping. Middle-drag pan and
    the remaining trackball bindings are left to the base style.
    """

    def __init__(self, controls: OrbitControls):
        super().__init__()
        self.controls = controls
        self._last_pos = None
        self._rotating = False

        self.RemoveObservers("LeftButtonPressEvent")
        self.AddObserver("LeftButtonPressEvent", self.on_left_button_down)
        self.RemoveObservers("LeftButtonReleaseEvent")
        self.AddObserver("LeftButtonReleaseEvent", self.on_left_button_up)
        self.RemoveObservers("MouseMoveEvent")
        self.AddObserver("MouseMoveEvent", self.on_mouse_move)
        self.RemoveObservers("MouseWheelForwardEvent")
        self.AddObserver("MouseWheelForwardEvent", self.on_wheel_forward)
        self.RemoveObservers("MouseWheelBackwardEvent")
        self.AddObserver("MouseWheelBackwardEvent", self.on_wheel_backward)

    def on_left_button_down(self, obj, event):
        iren = self.GetInteractor()
        self._rotating = True
        self._last_pos = iren.GetEventPosition()
        self.controls.stop()

    def on_mouse_move(self, obj, event):
        if not self._rotating:
            # pan / dolly drags of the base style
            self.OnMouseMove()
            return
        iren = self.GetInteractor()
        x, y = iren.GetEventPosition()
        lx, ly = self._last_pos
        self.controls.rotate(x - lx, y - ly)
        self._last_pos = (x, y)

    def on_left_button_up(self, obj, event):
        self._rotating = False
        self._last_pos = None

    def on_wheel_forward(self, obj, event):
        self.controls.dolly(WHEEL_DOLLY_FACTOR)

    def on_wheel_backward(self, obj, event):
        self.controls.dolly(1.0 / WHEEL_DOLLY_FACTOR)
