"""lambda-adapter CLI — ``lambda-adapter run``, ``lambda-adapter config``."""
