"""
Byte encoding of pendulum states for display and storage.

encode()/decode() use the normalized-angle scheme of an rgba8 image:
    byte  = round(((angle / π + 1) · 0.5) · 255)
    angle = (byte / 255 · 2 − 1) · π
with ω normalised against ±OMEGA_RANGE the same way. Angles are wrapped
to [−π, π) first, velocities outside the range are clamped to 0 or 255.
A NaN component encodes as the mid value.

hue_value_colors() is a lossy colouring for looking at a portrait and
cannot be decoded.
"""

import numpy as np
from matplotlib.colors import hsv_to_rgb

from pendulum_portrait.config import OMEGA_RANGE
from pendulum_portrait.grid import cell_index
from pendulum_portrait.sequential.rk4_double_pendulum import as_state

# A few float32 ulps at π
ANGLE_WRAP_TOLERANCE = 1e-6


def wrap_angles(state):
    """Copy of state with θ₁, θ₂ wrapped to [−π, π). Display only.

    float32(−π) lies just below −π and would otherwise wrap to just below
    +π, so anything within ANGLE_WRAP_TOLERANCE of +π after wrapping is
    snapped to −π.
    """
    s = np.array(as_state(state), copy=True)
    wrapped = (s[..., :2] + np.pi) % (2 * np.pi) - np.pi
    s[..., :2] = np.where(wrapped >= np.pi - ANGLE_WRAP_TOLERANCE, -np.pi, wrapped)
    return s


def quantization_step(omega_range=OMEGA_RANGE):
    """Width of one byte level per component (θ₁, θ₂, ω₁, ω₂)"""
    angle_step = 2 * np.pi / 255
    omega_step = 2 * omega_range / 255
    return np.array([angle_step, angle_step, omega_step, omega_step])


def encode(state, omega_range=OMEGA_RANGE):
    """Encode states [..., 4] as uint8 [..., 4]"""
    s = wrap_angles(np.asarray(as_state(state), dtype=np.float64))
    normalized = np.empty_like(s)
    normalized[..., :2] = (s[..., :2] / np.pi + 1) * 0.5
    normalized[..., 2:] = (s[..., 2:] / omega_range + 1) * 0.5
    normalized = np.where(np.isnan(normalized), 0.5, normalized)
    normalized = np.clip(normalized, 0.0, 1.0)
    return np.round(normalized * 255).astype(np.uint8)


def decode(data, omega_range=OMEGA_RANGE):
    """Decode uint8 [..., 4] back to float32 states [..., 4]"""
    data = np.asarray(data)
    if data.ndim == 0 or data.shape[-1] != 4:
        raise ValueError(f"encoded state must have a trailing axis of length 4, got shape {data.shape}")
    b = data.astype(np.float64) / 255
    state = np.empty(b.shape, dtype=np.float64)
    state[..., :2] = (b[..., :2] * 2 - 1) * np.pi
    state[..., 2:] = (b[..., 2:] * 2 - 1) * omega_range
    return state.astype(np.float32)


def encode_grid(frame, omega_range=OMEGA_RANGE):
    """Encode a [height × width × 4] frame as an rgba8 image"""
    return encode(frame, omega_range)


def decode_pixel(image, x, y, omega_range=OMEGA_RANGE):
    """Read back the state stored at pixel (x, y) of an encoded image"""
    image = np.asarray(image)
    height, width = image.shape[:2]
    if not (0 <= x < width and 0 <= y < height):
        raise IndexError(f"pixel ({x}, {y}) outside {width}x{height} image")
    return decode(image.reshape(-1, 4)[cell_index(x, y, width)], omega_range)


def hue_value_colors(states, omega_range=OMEGA_RANGE):
    """RGB [..., 3] colouring: mean angle → hue, angular speed → value"""
    s = wrap_angles(np.asarray(as_state(states), dtype=np.float64))
    mean_angle = 0.5 * (s[..., 0] + s[..., 1])
    hue = (mean_angle / np.pi + 1) * 0.5
    speed = np.sqrt(s[..., 2] ** 2 + s[..., 3] ** 2) / (np.sqrt(2) * omega_range)
    value = 1.0 - 0.75 * np.clip(np.nan_to_num(speed, nan=1.0), 0.0, 1.0)
    hsv = np.stack([np.nan_to_num(hue, nan=0.0) % 1.0,
                    np.full_like(hue, 0.85), value], axis=-1)
    return hsv_to_rgb(hsv)
