#!/usr/bin/env python3
"""
Development startup script for the QSuite AI service
"""

import sys
from pathlib import Path

def main():
    """Main startup function"""
    print("🚀 Starting QSuite AI service...")

    # Check if .env exists
    env_file = Path(".env")
    if not env_file.exists():
        print("⚠️  .env file not found. Creating from .env.example...")
        if Path(".env.example").exists():
            import shutil
            shutil.copy(".env.example", ".env")
            print("✅ .env file created. Please configure OPENAI_API_KEY and JWT_SECRET.")
        else:
            print("❌ .env.example not found!")
            sys.exit(1)

    # Check if virtual environment is activated
    if not hasattr(sys, 'real_prefix') and not (hasattr(sys, 'base_prefix') and sys.base_prefix != sys.prefix):
        print("⚠️  Virtual environment not detected. Consider using venv or conda.")

    # Create data directory
    data_dir = Path("data")
    data_dir.mkdir(exist_ok=True)

    print("🌟 Starting FastAPI server...")
    print("📚 API Documentation: http://localhost:8000/api/v1/docs")
    print("🏥 Health Check: http://localhost:8000/api/v1/health")
    print("🔄 Use Ctrl+C to stop the server")

    try:
        import uvicorn
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=8000,
            reload=True,
            log_level="info"
        )
    except KeyboardInterrupt:
        print("\n👋 Server stopped by user")

if __name__ == "__main__":
    main()
