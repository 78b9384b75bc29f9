"""Launch the Skill Graph UI: `python app.py` (or the `skillgraph` console script)."""
from skillgraph.ui.gradio_app import main

if __name__ == "__main__":
    main()
