"""
HealthRisk Main Entry Point

    python main.py age-groups --main กรุงเทพมหานคร --compare 50 --disease D01
"""
from healthrisk.cli.main import app

if __name__ == "__main__":
    app()
