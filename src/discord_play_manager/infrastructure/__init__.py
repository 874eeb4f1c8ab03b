"""Infrastructure adapters for discord.py, FFmpeg and yt-dlp."""
