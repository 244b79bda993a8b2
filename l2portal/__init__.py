"""l2portal: account registration gated by captcha, plus login/game server liveness."""

__version__ = "0.1.0"
