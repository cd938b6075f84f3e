"""SportsClub API: accounts, email verification, posts, events and profiles."""
