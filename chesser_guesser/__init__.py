"""ChesserGuesser daily puzzle and ranked scoring service."""
