"""Competency assessment engine: question banks, timed quizzes and scoring."""
