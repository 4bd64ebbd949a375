def can_admit(current_occupancy: int, total_spots: int) -> bool:
    return current_occupancy < total_spots
