# Project lifecycle: status transitions and the domain events they emit
