"""
Main entry point for the PDF Chat application.

Start it with: streamlit run run.py
"""
import sys
from pathlib import Path

# Add the project root directory to Python path
project_root = Path(__file__).resolve().parent
sys.path.append(str(project_root))

from pdf_chat.api.app import main

if __name__ == "__main__":
    main()
