from .user_model import Role, User, Profile
from .pet_model import PetType, PetStatus, Pet, PetImage
from .order_model import OrderStatus, Order, OrderItem
from .caretaking_model import ServiceType, BookingStatus, Service, Booking, CareLog
from .community_model import Post, Comment
from .favorite_model import Favorite
