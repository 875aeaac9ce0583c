"""Business logic for publications and edit moderation."""
