"""
Animated phase portrait session.

Each frame recomputes the whole grid from scratch at the current simulated
time, encodes it as an rgba8 image, and keeps a single preview trajectory
for the selected pixel in step with the frame through an IncrementalStepper.
"""

from pendulum_portrait.config import (
    CANVAS_SIZE,
    IntegrationConfig,
    InvalidConfigurationError,
    PhysicalParameters,
    TIME_STEP,
    step_count,
)
from pendulum_portrait.encoding import decode_pixel, encode_grid
from pendulum_portrait.grid import initial_conditions
from pendulum_portrait.parallel.incremental_double_pendulum_warp import IncrementalStepper
from pendulum_portrait.parallel.rk4_double_pendulum_warp import PhaseGridEvaluator


class PortraitSession:
    """Holds the simulation time, the latest frame and the selected pixel preview."""

    def __init__(self, width=CANVAS_SIZE, height=CANVAS_SIZE, params=None,
                 dt=TIME_STEP, tile_rows=None, device=None):
        self.params = params if params is not None else PhysicalParameters()
        self.dt = IntegrationConfig(dt=dt).dt
        self.evaluator = PhaseGridEvaluator(width, height, params=self.params, dt=self.dt,
                                            tile_rows=tile_rows, device=device)
        self.width = self.evaluator.width
        self.height = self.evaluator.height

        self.simulation_time = 0.0
        self.frame = None
        self.image = None

        # Centre pixel is selected initially
        self.selected_pixel = (self.width // 2, self.height // 2)
        self.preview = IncrementalStepper(initial_conditions(*self.selected_pixel, self.width, self.height),
                                          params=self.params, dt=self.dt, device=device)

    def advance(self, elapsed_time, cancel=None):
        """Recompute the frame at elapsed_time and catch the preview up to it"""
        IntegrationConfig(dt=self.dt, elapsed_time=elapsed_time)
        self.frame = self.evaluator.evaluate(elapsed_time, cancel=cancel)
        self.image = encode_grid(self.frame)
        self.simulation_time = float(elapsed_time)
        self._sync_preview()
        return self.frame

    def select_pixel(self, x, y):
        """Track a new pixel; its preview restarts from t = 0 and catches up"""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise InvalidConfigurationError(f"pixel ({x}, {y}) outside {self.width}x{self.height} grid")
        self.selected_pixel = (int(x), int(y))
        self.preview.reset(initial_conditions(x, y, self.width, self.height))
        self._sync_preview()

    def reset(self):
        """Back to t = 0, keeping the selected pixel"""
        self.preview.reset(initial_conditions(*self.selected_pixel, self.width, self.height))
        self.advance(0.0)

    def preview_state(self):
        return self.preview.state

    def decoded_preview_state(self):
        """Selected pixel's state as read back from the encoded frame"""
        if self.image is None:
            return None
        return decode_pixel(self.image, *self.selected_pixel)

    def _sync_preview(self):
        target = step_count(self.simulation_time, self.dt)
        if self.preview.steps > target:
            self.preview.reset(initial_conditions(*self.selected_pixel, self.width, self.height))
        self.preview.advance(target - self.preview.steps)
