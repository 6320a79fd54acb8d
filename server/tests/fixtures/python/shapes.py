class circle:
    radius = 1.0


class Square:
    pass
