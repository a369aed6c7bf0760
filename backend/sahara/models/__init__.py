from .auth import User, SessionToken
from .catalog import Country, City, Destination, Package, Tour, Hotel, Room, Visa
from .commerce import CartItem, Order, OrderItem
from .bookings import Booking, Payment, Review

__all__ = [
    'User', 'SessionToken',
    'Country', 'City', 'Destination', 'Package', 'Tour', 'Hotel', 'Room', 'Visa',
    'CartItem', 'Order', 'OrderItem',
    'Booking', 'Payment', 'Review',
]
