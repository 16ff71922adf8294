"""Escape-time kernels for the Mandelbrot iteration."""

from __future__ import annotations

import numpy as np
import tensorflow as tf

MAX_ITERATIONS = 100
HORIZON = 4


def iterate(real_c: float, imag_c: float, max_iterations: int = MAX_ITERATIONS) -> int:
    """Return the 0-indexed iteration in which the orbit of ``c`` escapes.

    Starting from ``z = 0`` the map ``z <- z*z + c`` is applied and the squared
    magnitude tested after every update. Points that never leave the horizon
    within ``max_iterations`` updates return ``max_iterations``.
    """

    x = 0.0
    y = 0.0
    for i in range(max_iterations):
        xy = x * y
        xx = x * x
        yy = y * y
        x = xx - yy + real_c
        y = 2.0 * xy + imag_c
        if x * x + y * y > HORIZON:
            return i
    return max_iterations


def iterate_row(real: np.ndarray, imag: np.ndarray, max_iterations: int = MAX_ITERATIONS) -> np.ndarray:
    """Vectorized :func:`iterate` over matching arrays of coordinates."""

    cr = np.asarray(real, dtype=np.float64).ravel()
    ci = np.asarray(imag, dtype=np.float64).ravel()
    counts = np.full(cr.shape, max_iterations, dtype=np.int32)

    index = np.arange(cr.size)
    x = np.zeros_like(cr)
    y = np.zeros_like(ci)

    with np.errstate(over="ignore", invalid="ignore"):
        for i in range(max_iterations):
            if not index.size:
                break
            xy = x * y
            xx = x * x
            yy = y * y
            x = xx - yy + cr
            y = 2.0 * xy + ci
            escaped = x * x + y * y > HORIZON
            if escaped.any():
                counts[index[escaped]] = i
                alive = ~escaped
                index = index[alive]
                x, y, cr, ci = x[alive], y[alive], cr[alive], ci[alive]

    return counts


@tf.function
def _escape_step(
    i: tf.Tensor,
    x: tf.Tensor,
    y: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    counts: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every orbit that has not escaped by one update."""

    xy = x * y
    xx = x * x
    yy = y * y
    x_new = xx - yy + cr
    y_new = 2.0 * xy + ci
    x = tf.where(active, x_new, x)
    y = tf.where(active, y_new, y)
    horizon = tf.cast(HORIZON, x.dtype)
    escaped = tf.logical_and(active, x * x + y * y > horizon)
    counts = tf.where(escaped, i, counts)
    active = tf.logical_and(active, tf.logical_not(escaped))
    return x, y, counts, active


@tf.function
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate every coordinate with a TensorFlow while loop."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    x = tf.zeros_like(cr)
    y = tf.zeros_like(ci)
    counts = tf.fill(tf.shape(cr), max_iterations)
    active = tf.ones_like(cr, tf.bool)

    def cond(i, x, y, counts, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, x, y, counts, active):
        x, y, counts, active = _escape_step(i, x, y, cr, ci, counts, active)
        return i + 1, x, y, counts, active

    _, _, _, counts, _ = tf.while_loop(cond, body, (i, x, y, counts, active))
    return counts


def iterate_tensor(
    real: np.ndarray,
    imag: np.ndarray,
    max_iterations: int = MAX_ITERATIONS,
    *,
    device: str | None = None,
) -> np.ndarray:
    """TensorFlow rendition of :func:`iterate_row`."""

    with tf.device(device if device is not None else "/CPU:0"):
        cr = tf.convert_to_tensor(np.asarray(real, dtype=np.float64).ravel(), dtype=tf.float64)
        ci = tf.convert_to_tensor(np.asarray(imag, dtype=np.float64).ravel(), dtype=tf.float64)
        counts = _escape_run(cr, ci, tf.constant(max_iterations, dtype=tf.int32))
    return counts.numpy().astype(np.int32, copy=False)
