"""Default values shared by the resolver and the animation evaluators."""

# Composition
DEFAULT_FPS = 30
DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720

# Timeline resolution
DEFAULT_TRANSITION_SECONDS = 1.0
DEFAULT_WORDS_PER_MINUTE = 165
MIN_SPOKEN_SECONDS = 0.25
TO_NEXT_SUFFIX = "__to_next"

# Staggering
DEFAULT_STAGGER_SEED = 42

# Springs
DEFAULT_SPRING_MASS = 1.0
DEFAULT_SPRING_STIFFNESS = 100.0
DEFAULT_SPRING_DAMPING = 10.0
MIN_SPRING_MASS = 0.0001
MIN_SPRING_STIFFNESS = 0.0001

# Transitions
DEFAULT_SLIDE_DISTANCE = 100.0
SPRING_SLIDE_DISTANCE = 40.0
DEFAULT_CHARS_PER_FRAME = 0.5
CURSOR_BLINK_FRAMES = 15

# Animation principles (frame counts are authored at 30 fps)
PRINCIPLES_BASE_FPS = 30
DEFAULT_SQUASH_RATIO = 0.6
DEFAULT_STRETCH_RATIO = 1.4
ANTICIPATION_SPRING_STIFFNESS = 300.0
ANTICIPATION_SPRING_DAMPING = 15.0
DEFAULT_FOLLOW_DRAG = 0.3
DEFAULT_FOLLOW_OVERSHOOT = 0.1
DEFAULT_ARC_HEIGHT = 100.0
DEFAULT_BEATS_PER_SECOND = 4


def get_easing_names():
    """Easing names accepted wherever an easing can be given by name."""
    return [
        'linear',
        'easeInQuad', 'easeOutQuad', 'easeInOutQuad',
        'easeInCubic', 'easeOutCubic', 'easeInOutCubic',
        'easeInQuart', 'easeOutQuart', 'easeInOutQuart',
        'easeInQuint', 'easeOutQuint', 'easeInOutQuint',
        'easeInExpo', 'easeOutExpo', 'easeInOutExpo',
        'easeInCirc', 'easeOutCirc', 'easeInOutCirc',
        'easeInBack', 'easeOutBack', 'easeInOutBack',
        'easeInElastic', 'easeOutElastic', 'easeInOutElastic',
        'easeInBounce', 'easeOutBounce', 'easeInOutBounce',
        'snappy', 'bouncy', 'smooth', 'sharp', 'dramatic',
    ]


def get_stagger_patterns():
    return {
        'linear': 'Linear',
        'reverse': 'Reverse',
        'from-center': 'From Center',
        'from-edges': 'From Edges',
        'random': 'Random',
        'row': 'Row',
        'column': 'Column',
        'diagonal': 'Diagonal',
        'spiral': 'Spiral',
    }


def get_transition_types():
    return {
        'fade': 'Fade',
        'slide': 'Slide',
        'push': 'Push',
        'scale': 'Scale',
        'wipe': 'Wipe',
        'typewriter': 'Typewriter',
        'spring': 'Spring',
    }
