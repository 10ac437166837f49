"""Body measures and goal-based calorie and macro targets."""
