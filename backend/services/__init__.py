"""
MelodyHub backing-track services
================================
- prompt_builder.py: turns a chord progression into a generation prompt
- suno_client.py: starts Suno generations and polls them to completion
- project_store.py: MongoDB access for projects, tracks and timeline items
- backing_track.py: the generate-and-append workflow
- cache.py / collaboration.py: Redis handle and collaborator notifications
"""
