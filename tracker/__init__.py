"""Personal productivity tracker: daily scores and streaks."""
