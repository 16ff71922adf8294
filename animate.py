import os
import sys
import warnings

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

from argparse import ArgumentParser

from mandelzoom import BACKENDS, HEIGHT, WIDTH, FieldRenderer, ZoomSchedule
from mandelzoom.display import ZoomAnimation, format_overlay

WINDOW_TITLE = "Mandelbrot"


def select_device():
    """Prefer the first visible GPU for the tensorflow backend."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


def build_parser():
    parser = ArgumentParser(description='Animated zoom into the Mandelbrot set.')

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of threads computing rows (default: one per CPU)',
                        metavar='WORKERS', default=None)

    parser.add_argument('--backend', choices=BACKENDS, default='numpy',
                        help='escape-time kernel used for each row: numpy (default), python or tensorflow.')

    parser.add_argument('--frames', type=int,
                        dest='frames', help='stop after this many frames; 0 runs until the window is closed',
                        metavar='FRAMES', default=0)

    parser.add_argument('--headless', action='store_true',
                        help='render without opening a window and print the timing of each frame.')

    parser.add_argument('--reset-below', type=float,
                        dest='reset_below', help='restart the zoom once the window size drops below this value',
                        metavar='SIZE', default=None)

    parser.add_argument('--interval', type=float,
                        dest='interval', help='delay between display ticks in milliseconds',
                        metavar='MS', default=16.0)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def validate_options(opt, parser: ArgumentParser) -> None:
    if opt.workers is not None and opt.workers < 1:
        parser.error("--workers must be at least 1.")
    if opt.frames < 0:
        parser.error("--frames cannot be negative.")
    if opt.headless and opt.frames == 0:
        parser.error("--headless requires a positive --frames.")
    if opt.reset_below is not None and opt.reset_below <= 0:
        parser.error("--reset-below must be positive.")
    if opt.interval <= 0:
        parser.error("--interval must be positive.")


def run_headless(animation: ZoomAnimation, frames: int) -> None:
    for i in range(frames):
        animation.step(present=False)
        text = format_overlay(animation.metrics, animation.fps.fps)
        print("frame {0} out of {1}: {2}".format(i + 1, frames, text), end='\r')
    print()
    log("final window size %.6g" % animation.view.size)


def run_window(animation: ZoomAnimation, frames: int, interval: float):
    import matplotlib.pyplot as plt
    from matplotlib.animation import FuncAnimation

    renderer = animation.renderer
    my_dpi = 100
    fig, ax = plt.subplots(figsize=(renderer.width / my_dpi, renderer.height / my_dpi), dpi=my_dpi)
    fig.patch.set_facecolor('black')
    if fig.canvas.manager is not None:
        fig.canvas.manager.set_window_title(WINDOW_TITLE)
    ax.axis('off')
    plt.subplots_adjust(0, 0, 1, 1, 0, 0)
    ax.margins(0, 0)

    img = ax.imshow(animation.step(), interpolation='nearest')

    def redraw():
        return (img,)

    def update(_frame):
        img.set_data(animation.step())
        return (img,)

    anim = FuncAnimation(
        fig,
        update,
        frames=frames - 1 if frames else None,
        init_func=redraw,
        interval=interval,
        blit=True,
        repeat=False,
        cache_frame_data=False,
    )
    plt.show()
    return anim


def main():
    parser = build_parser()
    opt = parser.parse_args()
    validate_options(opt, parser)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    device = select_device() if opt.backend == 'tensorflow' else None
    schedule = ZoomSchedule(reset_below=opt.reset_below)

    with FieldRenderer(WIDTH, HEIGHT, workers=opt.workers, backend=opt.backend, device=device) as renderer:
        log("rendering %dx%d with %d workers on the %s backend" % (WIDTH, HEIGHT, renderer.workers, renderer.backend))
        animation = ZoomAnimation(renderer, schedule)
        if opt.headless:
            run_headless(animation, opt.frames)
        else:
            run_window(animation, opt.frames, opt.interval)


if __name__ == '__main__':
    main()
