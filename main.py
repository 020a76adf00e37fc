"""
Backend Entry Point
Run with: python main.py
Or: uvicorn blogify.main:app --reload
"""
import uvicorn

from blogify.core.config import settings

if __name__ == "__main__":
    uvicorn.run("blogify.main:app", host=settings.HOST, port=settings.PORT, reload=settings.is_development)
