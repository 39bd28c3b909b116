"""ADHD daily scheduler: Google Calendar day plans with reminders and a summary email."""
