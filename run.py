#!/usr/bin/env python3
"""
Run script for deployment
"""

import os
import sys
import uvicorn
from dotenv import load_dotenv

# Add the current directory to Python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

# Load environment variables before settings are read
load_dotenv()

from app.main import app  # noqa: E402

if __name__ == "__main__":
    # Get port from environment variable (the host platform sets this)
    port = int(os.environ.get("PORT", 8000))
    
    # Run the application
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        log_level="info"
    )
