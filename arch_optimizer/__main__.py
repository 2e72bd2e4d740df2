# arch_optimizer/__main__.py
from arch_optimizer.cli import app


def main():
    """
    Main application
    """
    app(prog_name="arch-optimizer")


if __name__ == "__main__":
    main()
